from __future__ import annotations

from dataclasses import replace

from finance_miner.sources.finam.common.models import Emitent


def test_emitent_defaults_are_empty() -> None:
    e = Emitent()
    assert e.internal_id == 0
    assert (e.id, e.name, e.market_id, e.market_name, e.uri, e.code) == ("",) * 6


def test_emitent_to_dict() -> None:
    e = Emitent(internal_id=2, id="3", name="Сбербанк", uri="moex-akcii/sberbank")
    assert e.to_dict() == {
        "internal_id": 2,
        "id": "3",
        "name": "Сбербанк",
        "market_id": "",
        "market_name": "",
        "uri": "moex-akcii/sberbank",
        "code": "",
    }


def test_resolved_copy_leaves_catalog_record() -> None:
    e = Emitent(id="3")
    resolved = replace(e, code="SBER")
    assert e.code == ""
    assert resolved.code == "SBER"
