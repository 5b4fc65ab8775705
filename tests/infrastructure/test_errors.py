"""Tests for error messages and fetch failure classification."""

import asyncio

import httpx
import pytest

from crowdfund_sync.infrastructure.errors import (
    ERROR_MESSAGES,
    GENERIC_ERROR_MESSAGE,
    FailureKind,
    LedgerAccessError,
    LedgerConnectionError,
    LedgerError,
    LedgerRejection,
    classify_failure,
    message_for,
)


def status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "http://ledger/rpc")
    response = httpx.Response(code, request=request)
    return httpx.HTTPStatusError("error", request=request, response=response)


class TestMessages:

    def test_known_codes(self):
        assert message_for("NotOwner") == "You are not the owner of the campaign."
        assert message_for("CampaignGoalReached") == "The campaign goal was reached."
        assert len(ERROR_MESSAGES) == 14

    def test_unknown_code_is_generic(self):
        assert message_for("SomethingNew") == GENERIC_ERROR_MESSAGE

    def test_rejection_carries_code(self):
        exc = LedgerRejection("AlreadyWithdrawn")
        assert exc.code == "AlreadyWithdrawn"
        assert str(exc) == "You have already withdrawn your funds."
        assert isinstance(exc, LedgerError)

    def test_rejection_message_override(self):
        assert str(LedgerRejection("Custom", "Explicit text")) == "Explicit text"


class TestClassifyFailure:

    @pytest.mark.parametrize(
        "exc,kind",
        [
            (LedgerConnectionError("down"), FailureKind.CONNECTIVITY),
            (asyncio.TimeoutError(), FailureKind.CONNECTIVITY),
            (httpx.ConnectError("refused"), FailureKind.CONNECTIVITY),
            (httpx.ReadTimeout("slow"), FailureKind.CONNECTIVITY),
            (LedgerAccessError("denied", status_code=401), FailureKind.ACCESS_POLICY),
            (status_error(429), FailureKind.ACCESS_POLICY),
            (status_error(403), FailureKind.ACCESS_POLICY),
            (status_error(500), FailureKind.OTHER),
            (LedgerError("bad"), FailureKind.OTHER),
            (ValueError("parse"), FailureKind.OTHER),
        ],
    )
    def test_classification(self, exc, kind):
        assert classify_failure(exc) == kind

    def test_transience(self):
        assert FailureKind.CONNECTIVITY.is_transient
        assert FailureKind.ACCESS_POLICY.is_transient
        assert not FailureKind.OTHER.is_transient
