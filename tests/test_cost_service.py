"""Tests for the cost ledger and pricing"""
import threading
from types import SimpleNamespace

import pytest

from services.cost_service import CostLedger, CostService, CostUnit


class TestCostLedger:
    """Tests for CostLedger"""

    def test_empty_ledger(self):
        ledger = CostLedger()

        assert len(ledger) == 0
        assert ledger.total() == 0
        assert ledger.breakdown() == {"total": 0, "breakdown": []}

    def test_total_is_sum_of_entries(self):
        ledger = CostLedger()
        ledger.add("identify_user", 0.001)
        ledger.add("book_appointment", 0.002)

        assert ledger.total() == pytest.approx(0.003)
        assert ledger.breakdown()["breakdown"] == [
            {"service": "identify_user", "cost": 0.001, "unit": "request"},
            {"service": "book_appointment", "cost": 0.002, "unit": "request"},
        ]

    def test_entries_are_immutable_snapshot(self):
        ledger = CostLedger()
        entry = ledger.add("fetch_slots", 0.001)
        snapshot = ledger.entries()
        ledger.add("fetch_slots", 0.001)

        assert len(snapshot) == 1
        with pytest.raises(Exception):
            entry.cost = 1.0

    def test_concurrent_appends(self):
        ledger = CostLedger()

        def record():
            for _ in range(100):
                ledger.add("fetch_slots", 0.001)

        threads = [threading.Thread(target=record) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(ledger) == 800
        assert ledger.total() == pytest.approx(0.8)

    def test_reset(self):
        ledger = CostLedger()
        ledger.add("fetch_slots", 0.001)
        ledger.reset()

        assert len(ledger) == 0


class TestCostService:
    """Tests for CostService pricing"""

    @pytest.mark.parametrize(
        "name,cost",
        [
            ("identify_user", 0.001),
            ("fetch_slots", 0.001),
            ("book_appointment", 0.002),
            ("retrieve_appointments", 0.001),
            ("cancel_appointment", 0.002),
            ("modify_appointment", 0.002),
            ("end_conversation", 0.001),
        ],
    )
    def test_operation_costs(self, name, cost):
        assert CostService.operation_cost(name) == cost

    def test_llm_tokens(self):
        ledger = CostLedger()
        CostService.record_llm_tokens(ledger, "azure_openai_chat", 2000, 0)

        (entry,) = ledger.entries()
        assert entry.service == "azure_openai_chat_input"
        assert entry.unit == CostUnit.TOKENS_1K
        assert entry.cost == pytest.approx(0.003)

    def test_record_usage_summary(self):
        ledger = CostLedger()
        usage = SimpleNamespace(
            stt_audio_duration=120.0,
            llm_prompt_tokens=1000,
            llm_completion_tokens=1000,
            tts_characters_count=1000,
        )

        CostService.record_usage(ledger, usage)

        services = {entry.service: entry.cost for entry in ledger.entries()}
        assert services["deepgram_stt"] == pytest.approx(0.0086)
        assert services["azure_openai_chat_input"] == pytest.approx(0.0015)
        assert services["azure_openai_chat_output"] == pytest.approx(0.002)
        assert services["cartesia_tts"] == pytest.approx(0.01)
