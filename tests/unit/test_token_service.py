"""Unit tests for TokenApplicationService."""

import pytest

from src.ds_common.enums import LedgerEventType
from src.ds_common.amounts import MAX_AMOUNT
from src.ds_common.errors import BalanceOverflowError, InvalidAmountError, InvalidIdentifierError


class TestApprove:
    async def test_approve_overwrites(self, token_service, db, state) -> None:
        await token_service.approve(db, "0xalice", "custody:escrow", "USDC", 100)
        resp = await token_service.approve(db, "0xalice", "custody:escrow", "USDC", 40)

        assert resp.amount == 40
        assert state.allowances[("0xalice", "custody:escrow", "USDC")] == 40
        assert state.events[-1].event_type == LedgerEventType.ALLOWANCE_SET

    async def test_zero_revokes(self, token_service, db, state) -> None:
        await token_service.approve(db, "0xalice", "custody:vault", "USDC", 100)
        await token_service.approve(db, "0xalice", "custody:vault", "USDC", 0)
        assert state.allowances[("0xalice", "custody:vault", "USDC")] == 0

    async def test_negative_rejected(self, token_service, db) -> None:
        with pytest.raises(InvalidAmountError):
            await token_service.approve(db, "0xalice", "custody:vault", "USDC", -1)

    async def test_bad_spender_rejected(self, token_service, db) -> None:
        with pytest.raises(InvalidIdentifierError):
            await token_service.approve(db, "0xalice", "", "USDC", 1)


class TestReads:
    async def test_balance_and_allowance_default_zero(self, token_service, db) -> None:
        balance = await token_service.get_balance(db, "0xnobody", "USDC")
        allowance = await token_service.get_allowance(db, "0xnobody", "custody:escrow", "USDC")
        assert balance.amount == 0
        assert allowance.amount == 0


class TestFaucet:
    async def test_faucet_mints(self, token_service, db, state) -> None:
        resp = await token_service.faucet(db, "0xalice", "USDC", 1_500_000)
        assert resp.amount == 1_500_000
        assert state.balances[("0xalice", "USDC")] == 1_500_000
        assert state.events[-1].event_type == LedgerEventType.FAUCET_MINT

    async def test_faucet_rejects_zero(self, token_service, db) -> None:
        with pytest.raises(InvalidAmountError):
            await token_service.faucet(db, "0xalice", "USDC", 0)

    async def test_faucet_cannot_push_balance_past_ceiling(
        self, token_service, db, state, fund
    ) -> None:
        fund("0xalice", "USDC", MAX_AMOUNT)
        with pytest.raises(BalanceOverflowError):
            await token_service.faucet(db, "0xalice", "USDC", 1)
        assert state.balances[("0xalice", "USDC")] == MAX_AMOUNT
        assert state.events == []

    async def test_faucet_rejects_above_uint256(self, token_service, db) -> None:
        with pytest.raises(InvalidAmountError):
            await token_service.faucet(db, "0xalice", "USDC", 10**80)


class TestApproveCeiling:
    async def test_allowance_above_uint256_rejected(self, token_service, db, state) -> None:
        with pytest.raises(InvalidAmountError):
            await token_service.approve(
                db, "0xalice", "custody:vault", "USDC", MAX_AMOUNT + 1
            )
        assert state.allowances == {}
