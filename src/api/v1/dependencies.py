"""Dependency injection factories for API v1.

Services are cheap to build, so they are created per request around the
shared data store. Tests override ``get_data_store`` alone to point every
service at a different database.
"""

from functools import lru_cache

from fastapi import Depends

from domain.repositories.data_store import IDataStore
from domain.services.activity_service import ActivityService
from domain.services.aggregation_service import AggregationService
from domain.services.group_budget_service import GroupBudgetService
from domain.services.group_service import GroupService
from domain.services.group_transaction_service import GroupTransactionService
from domain.services.invitation_service import InvitationService
from domain.services.membership_service import MembershipService
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_store import SQLAlchemyDataStore


@lru_cache
def get_data_store() -> IDataStore:
    """Get the SQLAlchemy-backed data store."""
    return SQLAlchemyDataStore(async_session_factory)


def get_activity_service(store: IDataStore = Depends(get_data_store)) -> ActivityService:
    return ActivityService(store)


def get_membership_service(
    store: IDataStore = Depends(get_data_store),
    activity: ActivityService = Depends(get_activity_service),
) -> MembershipService:
    return MembershipService(store, activity_service=activity)


def get_group_service(
    store: IDataStore = Depends(get_data_store),
    memberships: MembershipService = Depends(get_membership_service),
    activity: ActivityService = Depends(get_activity_service),
) -> GroupService:
    return GroupService(store, memberships, activity_service=activity)


def get_invitation_service(
    store: IDataStore = Depends(get_data_store),
    memberships: MembershipService = Depends(get_membership_service),
    activity: ActivityService = Depends(get_activity_service),
) -> InvitationService:
    return InvitationService(store, memberships, activity_service=activity)


def get_transaction_service(
    store: IDataStore = Depends(get_data_store),
    activity: ActivityService = Depends(get_activity_service),
) -> GroupTransactionService:
    return GroupTransactionService(store, activity_service=activity)


def get_budget_service(
    store: IDataStore = Depends(get_data_store),
    activity: ActivityService = Depends(get_activity_service),
) -> GroupBudgetService:
    return GroupBudgetService(store, activity_service=activity)


def get_aggregation_service(store: IDataStore = Depends(get_data_store)) -> AggregationService:
    return AggregationService(store)
