"""Unit tests for filter evaluation and small entity helpers."""

from datetime import date, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from domain.entities.activity import BudgetActivityDetails, details_to_json
from domain.entities.finance import TransactionSummary
from domain.entities.group import FamilyRole, GroupRole, parse_family_role
from domain.entities.invitation import Invitation, InvitationMetadata
from domain.repositories.filters import Eq, Gte, In, Lte, OpenEndedOnOrAfter, matches


class TestMatches:
    def test_eq_and_null(self) -> None:
        assert matches({"a": 1}, Eq("a", 1))
        assert matches({"a": None}, Eq("a", None))
        assert not matches({"a": 2}, Eq("a", 1))

    def test_range_filters_skip_nulls(self) -> None:
        assert matches({"d": date(2024, 1, 5)}, Gte("d", date(2024, 1, 5)))
        assert matches({"d": date(2024, 1, 5)}, Lte("d", date(2024, 1, 5)))
        assert not matches({"d": None}, Gte("d", date(2024, 1, 1)))
        assert not matches({"d": None}, Lte("d", date(2024, 1, 1)))

    def test_in_with_empty_collection_matches_nothing(self) -> None:
        assert not matches({"a": 1}, In("a", []))
        assert matches({"a": 1}, In("a", [1, 2]))

    def test_open_ended(self) -> None:
        day = date(2024, 3, 1)
        assert matches({"end": None}, OpenEndedOnOrAfter("end", day))
        assert matches({"end": day}, OpenEndedOnOrAfter("end", day))
        assert not matches({"end": day - timedelta(days=1)}, OpenEndedOnOrAfter("end", day))


class TestFamilyRole:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("parent", FamilyRole.PARENT),
            (" Child ", FamilyRole.CHILD),
            ("uncle", None),
            (None, None),
            (42, None),
        ],
    )
    def test_parse(self, raw: object, expected: FamilyRole | None) -> None:
        assert parse_family_role(raw) == expected


class TestInvitationEntity:
    def test_metadata_ignores_malformed_blobs(self) -> None:
        assert InvitationMetadata.parse("junk") == InvitationMetadata()
        assert InvitationMetadata.parse({"family_role": "bogus"}).family_role is None
        assert InvitationMetadata.parse({"family_role": "guardian"}).family_role == FamilyRole.GUARDIAN

    def test_empty_metadata_is_stored_as_null(self) -> None:
        assert InvitationMetadata().to_dict() is None

    def test_expiry(self) -> None:
        invitation = Invitation(
            group_id=uuid4(),
            invited_by=uuid4(),
            email="a@example.com",
            role=GroupRole.MEMBER,
            token="t",
            expires_at=datetime.utcnow() - timedelta(seconds=1),
        )
        assert invitation.is_expired()
        assert invitation.is_pending


class TestFinanceEntities:
    def test_summary_balance(self) -> None:
        summary = TransactionSummary(total_income=Decimal("10"), total_expenses=Decimal("25.50"))
        assert summary.balance == Decimal("-15.50")

    def test_activity_details_serialize_decimals(self) -> None:
        assert details_to_json(BudgetActivityDetails(name="Food", amount=Decimal("12.5"))) == {
            "name": "Food",
            "amount": 12.5,
        }
        assert details_to_json(None) == {}
