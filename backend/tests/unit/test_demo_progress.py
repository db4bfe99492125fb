"""Unit tests for demo status progression"""
import re
from datetime import datetime, timedelta

import pytest

from app.models.transfer import Transfer
from app.services.demo_progress import advance_demo_transfer, fake_cctp_id, fake_tx_hash

NOW = datetime(2025, 3, 1, 12, 0, 0)


def transfer_aged(seconds, **fields):
    values = {
        "transfer_id": "BH_1",
        "status": "pending",
        "created_at": NOW - timedelta(seconds=seconds),
    }
    values.update(fields)
    return Transfer(**values)


class TestFakeValues:
    def test_tx_hash_shape(self):
        assert re.fullmatch(r"0x[0-9a-f]{64}", fake_tx_hash())

    def test_cctp_id_shape(self):
        assert re.fullmatch(r"cctp_[0-9a-z]{9}", fake_cctp_id())


class TestAdvanceDemoTransfer:
    """Tests for age-based demo progression"""

    def test_young_transfer_unchanged(self):
        assert advance_demo_transfer(transfer_aged(5), now=NOW) == {}

    def test_threshold_is_exclusive(self):
        assert advance_demo_transfer(transfer_aged(10), now=NOW) == {}

    def test_assigns_cctp_id_after_ten_seconds(self):
        changes = advance_demo_transfer(transfer_aged(15), now=NOW)
        assert set(changes) == {"cctp_transfer_id"}
        assert changes["cctp_transfer_id"].startswith("cctp_")

    def test_assigns_burn_hash_after_twenty_seconds(self):
        changes = advance_demo_transfer(transfer_aged(25, cctp_transfer_id="cctp_x"), now=NOW)
        assert set(changes) == {"tx_hash"}

    def test_one_step_per_call(self):
        """A transfer without a CCTP id past the burn threshold only gets the burn hash"""
        changes = advance_demo_transfer(transfer_aged(25), now=NOW)
        assert set(changes) == {"tx_hash"}

    def test_existing_values_not_replaced(self):
        transfer = transfer_aged(25, cctp_transfer_id="cctp_x", tx_hash="0xburn")
        assert advance_demo_transfer(transfer, now=NOW) == {}

    def test_completes_after_thirty_seconds(self):
        changes = advance_demo_transfer(transfer_aged(31), now=NOW)
        assert changes["status"] == "completed"
        assert changes["completed_at"] == NOW
        assert re.fullmatch(r"0x[0-9a-f]{64}", changes["destination_tx_hash"])

    @pytest.mark.parametrize("status", ["processing", "completed", "failed"])
    def test_only_pending_transfers_move(self, status):
        assert advance_demo_transfer(transfer_aged(120, status=status), now=NOW) == {}
