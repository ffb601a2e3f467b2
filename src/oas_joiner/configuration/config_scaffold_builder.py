"""Configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = "join-config.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Join configuration for oas-joiner.
# Every key is optional; the values below are the defaults.

strategies:
  # One of: fail, accept-left, accept-right, fail-on-paths,
  # rename-left, rename-right, deduplicate.
  default: fail
  # Per-category overrides; leave unset to use the default strategy.
  # paths: fail
  # schemas: rename-right
  # components: accept-left

rename:
  # Placeholders: {Name}, {Source}, {Index}, {Path}, {Method}, {OperationID},
  # {Tags}, {UsageType}, {StatusCode}, {ParamName}, {MediaType},
  # {PrimaryResource}, {AllPaths}, {AllMethods}, {AllOperationIDs}, {AllTags},
  # {RefCount}, {IsShared}. Pipe into functions: {Path | pathResource | pascalCase}
  template: "{Name}_{Source}"
  # Source identifier (path, file name or stem) -> schema name prefix.
  namespace_prefixes: {}
  # Prefix every schema of a prefixed source, not only colliding ones.
  always_apply_prefix: false
  # Trace operations that reference a schema to fill operation fields.
  operation_context: false
  # One of: first-encountered, most-specific, alphabetical.
  primary_operation_policy: first-encountered
  # Also trace the already-merged side when renaming it (rename-left).
  trace_both_sides: false

# One of: none, shallow, deep. Used by the deduplicate strategy.
equivalence_mode: none
# Fold structurally identical schemas into one after merging.
semantic_deduplication: false
# Collect a detailed record of every resolved collision.
collision_report: false
# Append servers and security requirements from every document.
merge_arrays: true
# Drop tags whose name was already merged.
deduplicate_tags: true
"""


def build_placeholder_configuration() -> str:
    """Build a YAML join configuration with defaults and inline guidance."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the placeholder join configuration to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(f"Join configuration file already exists: {destination.resolve()}")
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()
