"""
Semantic test: order view CLI.

Invariant:
The CLI prints the viewer's rendered view as JSON and exits non-zero when
the viewer has no role on the order or the order does not exist.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from order_lifecycle.runtime.view_entrypoint import EXIT_ACCESS_DENIED, EXIT_NOT_FOUND, main

RECORDS = {
    "orders": [
        {
            "id": "o-1",
            "buyerId": "b-1",
            "sellerId": "s-1",
            "status": "delivered",
            "purchaseDate": "2024-01-01T08:00:00Z",
            "paymentDetails": {"approvedAt": "2024-01-02T10:00:00Z"},
        },
        {
            "id": "o-2",
            "buyerId": "b-1",
            "sellerId": "s-2",
            "status": "pending",
            "purchaseDate": "2024-01-05T08:00:00Z",
        },
    ]
}


@pytest.fixture()
def orders_path(tmp_path: Path) -> Path:
    path = tmp_path / "orders.json"
    path.write_text(json.dumps(RECORDS), encoding="utf-8")
    return path


def test_single_order_for_seller(orders_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["--orders", str(orders_path), "--order-id", "o-1", "--viewer-id", "s-1"])

    rendered = json.loads(capsys.readouterr().out)
    assert rendered["role"] == "seller"
    assert rendered["display_step"]["step"] == 5
    assert rendered["display_step"]["key"] == "awaiting_payout"
    assert rendered["steps"][3]["time"] == "1月2日 18:00"


def test_buyer_list(orders_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["--orders", str(orders_path), "--list-as", "buyer", "--viewer-id", "b-1"])

    rendered = json.loads(capsys.readouterr().out)
    assert [item["order_id"] for item in rendered] == ["o-2", "o-1"]


def test_non_party_is_denied(orders_path: Path) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["--orders", str(orders_path), "--order-id", "o-1", "--viewer-id", "stranger"])

    assert exc_info.value.code == EXIT_ACCESS_DENIED


def test_missing_order(orders_path: Path) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["--orders", str(orders_path), "--order-id", "nope", "--viewer-id", "b-1"])

    assert exc_info.value.code == EXIT_NOT_FOUND


def test_admin_view_with_en_config(orders_path: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config_path = tmp_path / "engine.json"
    config_path.write_text(json.dumps({"locale": "en-HK"}), encoding="utf-8")

    main(
        [
            "--orders",
            str(orders_path),
            "--config",
            str(config_path),
            "--order-id",
            "o-2",
            "--viewer-id",
            "ops",
            "--admin",
        ]
    )

    rendered = json.loads(capsys.readouterr().out)
    assert rendered["role"] == "admin"
    assert rendered["actions"] == []
    assert rendered["steps"][0]["time"] == "5 Jan 16:00"
