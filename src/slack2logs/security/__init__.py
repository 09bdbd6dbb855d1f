"""Security filters for slack2logs."""

from slack2logs.security.filters import ChannelMembershipFilter

__all__ = ["ChannelMembershipFilter"]
