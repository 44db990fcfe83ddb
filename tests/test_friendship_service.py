"""
Tests for the friendship store, pair resolution and request state machine
"""

from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.errors import (
    FriendRequestNotFound,
    FriendshipAlreadyConfirmed,
    UserNotFound,
    ValidationFailed,
)
from app.models.users import FriendRequestDecision, FriendshipStatus
from app.services import friendships as friendships_service
from app.services.friendships import FriendRequestService, FriendshipStore, find_connection
from app.utils.dates import utcnow_seconds


class TestFriendshipStore:

    @pytest.mark.asyncio
    async def test_insert_creates_pending_row(self, db, make_user):
        user = await make_user()
        another_user = await make_user()

        friendship = await FriendshipStore(db).insert(user.id, another_user.id)

        assert friendship.id is not None
        assert friendship.user_id == user.id
        assert friendship.friend_id == another_user.id
        assert friendship.status == FriendshipStatus.PENDING
        assert friendship.confirmed_at is None
        assert (friendship.user_low_id, friendship.user_high_id) == (
            min(user.id, another_user.id), max(user.id, another_user.id)
        )

    @pytest.mark.asyncio
    async def test_reversed_pair_violates_unique_constraint(self, db, make_user):
        user = await make_user()
        another_user = await make_user()
        user_id, another_user_id = user.id, another_user.id
        store = FriendshipStore(db)
        await store.insert(user_id, another_user_id)

        with pytest.raises(IntegrityError):
            await store.insert(another_user_id, user_id)
        await db.rollback()

    @pytest.mark.asyncio
    async def test_self_pair_violates_check_constraint(self, db, make_user):
        user = await make_user()

        with pytest.raises(IntegrityError):
            await FriendshipStore(db).insert(user.id, user.id)
        await db.rollback()

    @pytest.mark.asyncio
    async def test_confirm_sets_status_and_timestamp(self, db, make_user):
        user = await make_user()
        another_user = await make_user()
        store = FriendshipStore(db)
        friendship = await store.insert(user.id, another_user.id)
        at = utcnow_seconds()

        confirmed = await store.confirm(friendship.id, at)

        assert confirmed.status == FriendshipStatus.CONFIRMED
        assert confirmed.confirmed_at == at
        assert (await store.find_by_id(friendship.id)).is_confirmed

    @pytest.mark.asyncio
    async def test_confirm_twice_fails(self, db, make_user):
        user = await make_user()
        another_user = await make_user()
        store = FriendshipStore(db)
        friendship = await store.insert(user.id, another_user.id)
        await store.confirm(friendship.id, utcnow_seconds())

        with pytest.raises(FriendshipAlreadyConfirmed):
            await store.confirm(friendship.id, utcnow_seconds())

    @pytest.mark.asyncio
    async def test_confirm_missing_row_fails(self, db):
        with pytest.raises(FriendRequestNotFound):
            await FriendshipStore(db).confirm(404, utcnow_seconds())

    @pytest.mark.asyncio
    async def test_find_by_id_missing(self, db):
        assert await FriendshipStore(db).find_by_id(1) is None


class TestFindConnection:

    @pytest.mark.asyncio
    async def test_connection_is_found_from_both_sides(self, db, make_user):
        user = await make_user()
        another_user = await make_user()
        friendship = await FriendRequestService(db).send_request(user.id, another_user.id)

        forward = await find_connection(db, user.id, another_user.id)
        backward = await find_connection(db, another_user.id, user.id)

        assert forward is not None
        assert forward.id == backward.id == friendship.id

    @pytest.mark.asyncio
    async def test_unrelated_users_have_no_connection(self, db, make_user):
        user = await make_user()
        another_user = await make_user()
        third_user = await make_user()
        await FriendRequestService(db).send_request(user.id, another_user.id)

        assert await find_connection(db, user.id, third_user.id) is None
        assert await find_connection(db, third_user.id, another_user.id) is None


class TestFriendRequestService:

    @pytest.mark.asyncio
    async def test_send_to_unknown_user_fails_without_writing(self, db, make_user):
        user = await make_user()
        service = FriendRequestService(db)

        with pytest.raises(UserNotFound):
            await service.send_request(user.id, 12345)

        assert await find_connection(db, user.id, 12345) is None

    @pytest.mark.asyncio
    async def test_send_to_self_is_a_field_error(self, db, make_user):
        user = await make_user()

        with pytest.raises(ValidationFailed) as exc_info:
            await FriendRequestService(db).send_request(user.id, user.id)

        assert exc_info.value.field == "friend_id"

    @pytest.mark.asyncio
    async def test_send_to_inactive_user_fails(self, db, make_user):
        user = await make_user()
        inactive_user = await make_user()
        inactive_user.is_active = False
        await db.commit()

        with pytest.raises(UserNotFound):
            await FriendRequestService(db).send_request(user.id, inactive_user.id)

    @pytest.mark.asyncio
    async def test_recipient_accepts(self, db, make_user):
        user = await make_user()
        another_user = await make_user()
        service = FriendRequestService(db)
        await service.send_request(user.id, another_user.id)

        friendship = await service.respond(another_user.id, user.id, FriendRequestDecision.ACCEPT)

        assert friendship.status == FriendshipStatus.CONFIRMED
        assert abs(utcnow_seconds() - friendship.confirmed_at) <= timedelta(seconds=2)

    @pytest.mark.asyncio
    async def test_requester_cannot_respond(self, db, make_user):
        user = await make_user()
        another_user = await make_user()
        service = FriendRequestService(db)
        sent = await service.send_request(user.id, another_user.id)

        with pytest.raises(FriendRequestNotFound):
            await service.respond(user.id, another_user.id, FriendRequestDecision.ACCEPT)
        with pytest.raises(FriendRequestNotFound):
            await service.respond(user.id, user.id, FriendRequestDecision.ACCEPT)

        assert (await FriendshipStore(db).find_by_id(sent.id)).status == FriendshipStatus.PENDING

    @pytest.mark.asyncio
    async def test_third_party_cannot_respond(self, db, make_user):
        user = await make_user()
        another_user = await make_user()
        third_user = await make_user()
        service = FriendRequestService(db)
        await service.send_request(user.id, another_user.id)

        with pytest.raises(FriendRequestNotFound):
            await service.respond(third_user.id, user.id, FriendRequestDecision.ACCEPT)

    @pytest.mark.asyncio
    async def test_decline_keeps_request_pending(self, db, make_user):
        user = await make_user()
        another_user = await make_user()
        service = FriendRequestService(db)
        await service.send_request(user.id, another_user.id)

        friendship = await service.respond(another_user.id, user.id, FriendRequestDecision.DECLINE)

        assert friendship.status == FriendshipStatus.PENDING
        assert friendship.confirmed_at is None

    @pytest.mark.asyncio
    async def test_friendship_between_is_symmetric(self, db, make_user):
        user = await make_user()
        another_user = await make_user()
        service = FriendRequestService(db)
        await service.send_request(another_user.id, user.id)
        await service.respond(user.id, another_user.id, FriendRequestDecision.ACCEPT)

        forward = await service.friendship_between(user.id, another_user.id)
        backward = await service.friendship_between(another_user.id, user.id)

        assert forward.id == backward.id
        assert forward.is_confirmed
        assert await service.friendship_between(user.id, user.id) is None

    @pytest.mark.asyncio
    async def test_losing_an_insert_race_returns_the_existing_row(self, db, make_user, fetch_friendships, monkeypatch):
        user = await make_user()
        another_user = await make_user()
        user_id, another_user_id = user.id, another_user.id
        # the other side already created the row, but the first lookup does not see it yet
        winner = await FriendshipStore(db).insert(another_user_id, user_id)
        winner_id = winner.id

        lookups = []

        async def stale_then_real(session, a, b):
            lookups.append((a, b))
            if len(lookups) == 1:
                return None
            return await find_connection(session, a, b)

        monkeypatch.setattr(friendships_service, "find_connection", stale_then_real)

        friendship = await FriendRequestService(db).send_request(user_id, another_user_id)

        assert friendship.id == winner_id
        assert friendship.user_id == another_user_id
        assert len(lookups) == 2
        assert [f.id for f in await fetch_friendships()] == [winner_id]
