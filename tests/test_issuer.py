import logging
from contextlib import nullcontext
from unittest.mock import Mock

import pytest
from prometheus_client import REGISTRY

from quizreward.fsm import MintState
from quizreward.reward.application.issuer import RewardIssuer
from quizreward.reward.domain.artwork import ArtworkGenerator
from quizreward.reward.domain.errors import (
    AuthorizationError,
    AuthReason,
    EligibilityError,
    EligibilityReason,
    LedgerInconsistencyError,
    LedgerReason,
    ValidationError,
    ValidationReason,
)
from quizreward.reward.domain.models import (
    AuthorizationContext,
    Derive,
    Explicit,
    RewardClaimed,
)
from quizreward.reward.domain.ports import ISupplyLedger
from quizreward.shared.telemetry import Telemetry
from tests.drivers.reward_driver import ADDR1, ADDR2, OWNER, RELAY, svg_data_uri


# --- Fixtures (The "Arrange" Phase) ---

@pytest.fixture
def mock_ledger():
    """A strict mock of the ledger port, already owned by OWNER."""
    ledger = Mock(spec=ISupplyLedger)
    ledger.transaction.side_effect = lambda: nullcontext()
    ledger.registered_owner.return_value = OWNER
    ledger.next_identifier.return_value = 1
    ledger.has_claimed.return_value = False
    return ledger


class TestConstruction:
    def test_fresh_ledger_registers_originator_and_collection(self, issuer):
        assert issuer.registered_owner == OWNER
        assert issuer.name == "Oasis Reward"
        assert issuer.symbol == "OASIS"
        assert issuer.total_supply() == 0
        assert issuer.last_state == MintState.IDLE

    def test_originator_not_caller_becomes_owner(self, memory_ledger):
        issuer = RewardIssuer(memory_ledger, AuthorizationContext(caller=RELAY, originator=OWNER))

        assert issuer.registered_owner == OWNER

    def test_initialized_ledger_keeps_its_owner(self, mock_ledger):
        RewardIssuer(mock_ledger, AuthorizationContext.direct(ADDR1))

        mock_ledger.register_owner.assert_not_called()
        mock_ledger.set_collection.assert_not_called()


class TestMint:
    def test_owner_mint_derives_artwork_and_emits_event(self, issuer, owner_ctx):
        token_id = issuer.mint(ADDR1, owner_ctx)

        assert token_id == 1
        assert issuer.owner_of(1) == ADDR1
        assert issuer.token_uri(1) == issuer.generate_preview(1)
        assert issuer.events() == [RewardClaimed(recipient=ADDR1, id=1)]
        assert issuer.last_state == MintState.ISSUED

    def test_explicit_payload_is_stored_verbatim(self, issuer, owner_ctx):
        foreign = svg_data_uri('<svg xmlns="http://www.w3.org/2000/svg"><rect width="5" height="5"/></svg>')

        token_id = issuer.mint(ADDR1, owner_ctx, Explicit(payload=foreign))

        assert issuer.token_uri(token_id) == foreign
        assert issuer.token_uri(token_id) != issuer.generate_preview(token_id)

    def test_bare_string_is_treated_as_explicit_payload(self, issuer, owner_ctx):
        payload = issuer.generate_complex_svg(1)

        issuer.mint(ADDR1, owner_ctx, payload)

        assert issuer.token_uri(1) == payload

    def test_derive_is_the_default(self, issuer, owner_ctx):
        issuer.mint(ADDR1, owner_ctx, Derive())

        assert issuer.token_uri(1) == issuer.generate_preview(1)

    def test_relayed_mint_from_owner_succeeds(self, issuer):
        token_id = issuer.mint(ADDR1, AuthorizationContext(caller=RELAY, originator=OWNER))

        assert token_id == 1

    def test_stranger_mint_is_rejected_without_mutation(self, issuer, stranger_ctx):
        with pytest.raises(AuthorizationError, match="^Owner address not tx.origin$"):
            issuer.mint(ADDR1, stranger_ctx)

        assert issuer.total_supply() == 0
        assert issuer.owner_of(1) is None
        assert issuer.events() == []
        assert issuer.last_state == MintState.REJECTED

    def test_relay_cannot_launder_a_foreign_origin(self, issuer):
        with pytest.raises(AuthorizationError):
            issuer.mint(ADDR1, AuthorizationContext(caller=OWNER, originator=ADDR2))

        assert issuer.total_supply() == 0

    def test_malformed_payload_is_rejected_without_mutation(self, issuer, owner_ctx):
        with pytest.raises(ValidationError) as exc_info:
            issuer.mint(ADDR1, owner_ctx, Explicit(payload="data:image/svg+xml;base64,PHN2Zz4="))

        assert exc_info.value.reason == ValidationReason.INVALID_ARTWORK
        assert issuer.total_supply() == 0
        assert issuer.last_state == MintState.REJECTED

    @pytest.mark.parametrize("recipient", ["", "0x0000000000000000000000000000000000000000"])
    def test_unset_recipient_is_rejected(self, issuer, owner_ctx, recipient):
        with pytest.raises(ValidationError) as exc_info:
            issuer.mint(recipient, owner_ctx)

        assert exc_info.value.reason == ValidationReason.INVALID_RECIPIENT
        assert issuer.total_supply() == 0

    @pytest.mark.parametrize("recipient", [12345, None, b"0xabc", ["0xabc"]])
    def test_non_string_recipient_is_a_validation_error(self, issuer, owner_ctx, recipient):
        issuer.mint(ADDR1, owner_ctx)

        with pytest.raises(ValidationError) as exc_info:
            issuer.mint(recipient, owner_ctx)

        assert exc_info.value.reason == ValidationReason.INVALID_RECIPIENT
        assert issuer.total_supply() == 1
        assert issuer.last_state == MintState.REJECTED

    def test_unexpected_ledger_error_still_finishes_the_mint(self, mock_ledger, owner_ctx):
        issuer = RewardIssuer(mock_ledger, owner_ctx)
        issuer.mint(ADDR1, owner_ctx)
        assert issuer.last_state == MintState.ISSUED

        rejected_before = REGISTRY.get_sample_value(
            "quizreward_mint_outcomes_total", {"state": "REJECTED"}
        ) or 0.0
        mock_ledger.append_event.side_effect = RuntimeError("disk full")

        with pytest.raises(RuntimeError, match="disk full"):
            issuer.mint(ADDR2, owner_ctx)

        assert issuer.last_state == MintState.REJECTED
        assert REGISTRY.get_sample_value(
            "quizreward_mint_outcomes_total", {"state": "REJECTED"}
        ) == rejected_before + 1

    def test_unconfigured_owner_rejects_mint(self, mock_ledger, owner_ctx):
        issuer = RewardIssuer(mock_ledger, owner_ctx)
        mock_ledger.registered_owner.return_value = ""

        with pytest.raises(AuthorizationError) as exc_info:
            issuer.mint(ADDR1, owner_ctx)

        assert exc_info.value.reason == AuthReason.NOT_CONFIGURED
        mock_ledger.record.assert_not_called()

    def test_ledger_failure_surfaces_and_rolls_back(self, issuer, owner_ctx, memory_ledger):
        with memory_ledger.transaction():
            memory_ledger.record(1, ADDR2, "data:x")
        # Rewind the counter so the next peek collides with identifier 1
        memory_ledger.state.supply = 0

        with pytest.raises(LedgerInconsistencyError) as exc_info:
            issuer.mint(ADDR1, owner_ctx)

        assert exc_info.value.reason == LedgerReason.DUPLICATE_IDENTIFIER
        assert issuer.total_supply() == 0
        assert issuer.owner_of(1) == ADDR2
        assert issuer.events() == []
        assert issuer.last_state == MintState.REJECTED

    def test_ledger_failure_on_mock_reaches_caller(self, mock_ledger, owner_ctx):
        issuer = RewardIssuer(mock_ledger, owner_ctx)
        mock_ledger.record.side_effect = LedgerInconsistencyError(
            LedgerReason.DUPLICATE_IDENTIFIER, "identifier 1 already recorded"
        )

        with pytest.raises(LedgerInconsistencyError):
            issuer.mint(ADDR1, owner_ctx)

        mock_ledger.append_event.assert_not_called()

    def test_mint_sequence_on_the_port(self, mock_ledger, owner_ctx):
        issuer = RewardIssuer(mock_ledger, owner_ctx, artwork=ArtworkGenerator())
        mock_ledger.next_identifier.return_value = 7

        token_id = issuer.mint(ADDR1, owner_ctx)

        assert token_id == 7
        mock_ledger.record.assert_called_once_with(7, ADDR1, issuer.generate_preview(7))
        mock_ledger.append_event.assert_called_once_with(RewardClaimed(recipient=ADDR1, id=7))


class TestClaimReward:
    def test_eligible_participant_claims_once(self, issuer, owner_ctx):
        token_id = issuer.claim_reward(ADDR1, owner_ctx, eligible=True)

        assert token_id == 1
        assert issuer.has_claimed(ADDR1)
        assert issuer.owner_of(1) == ADDR1

    def test_second_claim_is_refused(self, issuer, owner_ctx):
        issuer.claim_reward(ADDR1, owner_ctx, eligible=True)

        with pytest.raises(EligibilityError) as exc_info:
            issuer.claim_reward(ADDR1, owner_ctx, eligible=True)

        assert exc_info.value.reason == EligibilityReason.ALREADY_CLAIMED
        assert issuer.total_supply() == 1

    def test_ineligible_participant_is_refused(self, issuer, owner_ctx):
        with pytest.raises(EligibilityError) as exc_info:
            issuer.claim_reward(ADDR1, owner_ctx, eligible=False)

        assert exc_info.value.reason == EligibilityReason.NOT_ELIGIBLE
        assert not issuer.has_claimed(ADDR1)
        assert issuer.total_supply() == 0

    def test_claim_still_requires_owner_origin(self, issuer, stranger_ctx):
        with pytest.raises(AuthorizationError):
            issuer.claim_reward(ADDR1, stranger_ctx, eligible=True)

        assert not issuer.has_claimed(ADDR1)

    def test_plain_mint_does_not_consume_a_claim(self, issuer, owner_ctx):
        issuer.mint(ADDR1, owner_ctx)

        assert issuer.claim_reward(ADDR1, owner_ctx, eligible=True) == 2


class TestTransferOwnership:
    def test_owner_hands_over_minting_rights(self, issuer, owner_ctx):
        issuer.transfer_ownership(ADDR2, owner_ctx)

        assert issuer.registered_owner == ADDR2
        with pytest.raises(AuthorizationError):
            issuer.mint(ADDR1, owner_ctx)
        assert issuer.mint(ADDR1, AuthorizationContext.direct(ADDR2)) == 1

    def test_stranger_cannot_take_ownership(self, issuer, stranger_ctx):
        with pytest.raises(AuthorizationError):
            issuer.transfer_ownership(ADDR1, stranger_ctx)

        assert issuer.registered_owner == OWNER

    def test_zero_address_is_refused(self, issuer, owner_ctx):
        with pytest.raises(ValidationError):
            issuer.transfer_ownership("0x0000000000000000000000000000000000000000", owner_ctx)

        assert issuer.registered_owner == OWNER

    def test_non_string_new_owner_is_refused(self, issuer, owner_ctx):
        with pytest.raises(ValidationError) as exc_info:
            issuer.transfer_ownership(42, owner_ctx)

        assert exc_info.value.reason == ValidationReason.INVALID_RECIPIENT
        assert issuer.registered_owner == OWNER


class TestPreview:
    def test_preview_has_no_side_effects(self, issuer):
        issuer.generate_preview(1)

        assert issuer.total_supply() == 0
        assert issuer.events() == []

    def test_preview_needs_no_authorization(self, mock_ledger, owner_ctx):
        issuer = RewardIssuer(mock_ledger, owner_ctx)
        mock_ledger.reset_mock()

        issuer.generate_preview(3)

        mock_ledger.registered_owner.assert_not_called()
        mock_ledger.transaction.assert_not_called()

    def test_invalid_preview_identifier(self, issuer):
        with pytest.raises(ValidationError):
            issuer.generate_preview(-5)


class TestTracing:
    def test_each_mint_runs_under_its_own_trace_id(self, issuer, owner_ctx, caplog):
        with caplog.at_level(logging.INFO, logger="RewardIssuer"):
            issuer.mint(ADDR1, owner_ctx)
            first = Telemetry.get_trace_id()
            issuer.mint(ADDR2, owner_ctx)
            second = Telemetry.get_trace_id()

        assert first != second
        assert f"[{first}] 🎖️ RewardClaimed" in caplog.text
        assert f"[{second}] 🎖️ RewardClaimed" in caplog.text

    def test_transfer_starts_a_trace(self, issuer, owner_ctx, caplog):
        with caplog.at_level(logging.INFO, logger="RewardIssuer"):
            issuer.transfer_ownership(ADDR2, owner_ctx)

        assert f"[{Telemetry.get_trace_id()}] 👑 Ownership transferred" in caplog.text
