from .users import User, Friendship, FriendshipStatus, FriendRequestDecision


__all__ = ['User', 'Friendship', 'FriendshipStatus', 'FriendRequestDecision']
