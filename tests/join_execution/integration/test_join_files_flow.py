"""File join flow integration tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from openpyxl import load_workbook
from oas_joiner.join_execution import JoinError, JoinRequest, execute_join_run
from oas_joiner.results_writing import COLLISIONS_SHEET_NAME

USERS_DOCUMENT = """openapi: 3.0.3
info:
  title: Users
  version: "1"
paths:
  /users:
    get:
      responses:
        "200":
          description: ok
          content:
            application/json:
              schema:
                $ref: "#/components/schemas/User"
components:
  schemas:
    User:
      type: object
      properties:
        name:
          type: string
"""

ORDERS_DOCUMENT = """openapi: 3.0.3
info:
  title: Orders
  version: "1"
paths:
  /orders:
    post:
      requestBody:
        content:
          application/json:
            schema:
              $ref: "#/components/schemas/User"
      responses:
        "201":
          description: created
components:
  schemas:
    User:
      type: object
      properties:
        id:
          type: integer
"""


def _write_documents(tmp_path: Path) -> tuple[str, str]:
    users = tmp_path / "users.yaml"
    orders = tmp_path / "orders.yaml"
    users.write_text(USERS_DOCUMENT, encoding="utf-8")
    orders.write_text(ORDERS_DOCUMENT, encoding="utf-8")
    return str(users), str(orders)


def _write_config(tmp_path: Path, body: dict) -> str:
    path = tmp_path / "join-config.yaml"
    path.write_text(yaml.safe_dump(body), encoding="utf-8")
    return str(path)


def test_join_run_writes_merged_document_and_report(tmp_path: Path) -> None:
    users, orders = _write_documents(tmp_path)
    config_path = _write_config(
        tmp_path,
        {
            "strategies": {"schemas": "rename-right"},
            "rename": {
                "template": "{Name}_{PrimaryResource | pascalCase}",
                "operation_context": True,
            },
        },
    )

    outcome = execute_join_run(
        JoinRequest(
            spec_paths=(users, orders),
            output_path=str(tmp_path / "out" / "merged.yaml"),
            config_path=config_path,
            report_path=str(tmp_path / "out" / "collisions.xlsx"),
        )
    )

    merged = yaml.safe_load(outcome.output_path.read_text(encoding="utf-8"))
    assert merged["info"]["title"] == "Users"
    assert list(merged["paths"]) == ["/users", "/orders"]
    assert list(merged["components"]["schemas"]) == ["User", "User_Orders"]
    request_schema = merged["paths"]["/orders"]["post"]["requestBody"]["content"][
        "application/json"
    ]["schema"]
    assert request_schema == {"$ref": "#/components/schemas/User_Orders"}

    sheet = load_workbook(outcome.report_path)[COLLISIONS_SHEET_NAME]
    rows = list(sheet.iter_rows(values_only=True))
    assert len(rows) == 2
    assert rows[1][2] == "User"
    assert rows[1][7] == "User_Orders"
    assert rows[1][9] == f"{orders}:18:5"


def test_json_suffix_selects_json_output(tmp_path: Path) -> None:
    users, _orders = _write_documents(tmp_path)
    second = tmp_path / "extra.yaml"
    second.write_text("openapi: 3.0.3\npaths:\n  /extra: {}\n", encoding="utf-8")

    outcome = execute_join_run(
        JoinRequest(spec_paths=(users, str(second)), output_path=str(tmp_path / "merged.json"))
    )

    merged = json.loads(outcome.output_path.read_text(encoding="utf-8"))
    assert list(merged["paths"]) == ["/users", "/extra"]
    assert outcome.report_path is None
    assert outcome.result.collision_report is None


def test_join_run_reports_collisions_as_join_errors(tmp_path: Path) -> None:
    users, orders = _write_documents(tmp_path)

    with pytest.raises(JoinError, match="schema 'User' collides between"):
        execute_join_run(
            JoinRequest(spec_paths=(users, orders), output_path=str(tmp_path / "m.yaml"))
        )

    assert not (tmp_path / "m.yaml").exists()


def test_unreadable_inputs_become_join_errors(tmp_path: Path) -> None:
    users, _orders = _write_documents(tmp_path)
    broken = tmp_path / "broken.yaml"
    broken.write_text("paths: {}\n", encoding="utf-8")

    with pytest.raises(JoinError, match="version"):
        execute_join_run(
            JoinRequest(spec_paths=(users, str(broken)), output_path=str(tmp_path / "m.yaml"))
        )
    with pytest.raises(JoinError):
        execute_join_run(
            JoinRequest(
                spec_paths=(users, str(tmp_path / "missing.yaml")),
                output_path=str(tmp_path / "m.yaml"),
            )
        )


def test_invalid_configuration_becomes_a_join_error(tmp_path: Path) -> None:
    users, orders = _write_documents(tmp_path)
    config_path = _write_config(tmp_path, {"strategies": {"default": "merge"}})

    with pytest.raises(JoinError, match="strategies.default"):
        execute_join_run(
            JoinRequest(
                spec_paths=(users, orders),
                output_path=str(tmp_path / "m.yaml"),
                config_path=config_path,
            )
        )
