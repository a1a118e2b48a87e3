"""Blocklists: merchant overrides of the built-in profanity list, plus blocked emails.

Each stored ``BlockedTerm`` either adds a term (active) or suppresses one
(inactive). The effective word list is the default list overlaid with the
stored entries, so removing a default word sticks.
"""

from datetime import UTC, datetime
from enum import Enum

import structlog
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.domain import trust
from trust.moderation.heuristics import DEFAULT_BLOCKED_WORDS, HeuristicProfile
from trust.utils.repository import fetch_all

logger = structlog.get_logger(__name__)


class TermKind(Enum):
    WORD = "word"
    EMAIL = "email"


@trust.aggregate
class BlockedTerm:
    kind = String(required=True, choices=TermKind)
    value = String(required=True, max_length=254)
    active = Boolean(default=True)
    updated_at = DateTime()

    def activate(self):
        self.active = True
        self.updated_at = datetime.now(UTC)

    def deactivate(self):
        self.active = False
        self.updated_at = datetime.now(UTC)


def _normalize(value, field_name):
    value = (value or "").strip().lower()
    if not value:
        raise ValidationError({field_name: [f"{field_name.capitalize()} cannot be empty"]})
    return value


def _find(kind, value):
    matches = fetch_all(BlockedTerm, kind=kind, value=value)
    return matches[0] if matches else None


def blocked_words():
    words = set(DEFAULT_BLOCKED_WORDS)
    for term in fetch_all(BlockedTerm, kind=TermKind.WORD.value):
        if term.active:
            words.add(term.value)
        else:
            words.discard(term.value)
    return sorted(words)


def blocked_emails():
    return sorted(term.value for term in fetch_all(BlockedTerm, kind=TermKind.EMAIL.value) if term.active)


def load_profile():
    """The heuristic profile with the merchant's blocklists applied."""
    return HeuristicProfile(blocked_words=frozenset(blocked_words()), blocked_emails=frozenset(blocked_emails()))


def _set_term(kind, value, active):
    repo = current_domain.repository_for(BlockedTerm)
    term = _find(kind, value)
    if term is None:
        term = BlockedTerm(kind=kind, value=value, active=active, updated_at=datetime.now(UTC))
    elif active:
        term.activate()
    else:
        term.deactivate()
    repo.add(term)
    return term


@trust.command(part_of="BlockedTerm")
class AddBlockedWord:
    word = String(required=True, max_length=254)


@trust.command(part_of="BlockedTerm")
class RemoveBlockedWord:
    word = String(required=True, max_length=254)


@trust.command(part_of="BlockedTerm")
class BlockEmail:
    email = String(required=True, max_length=254)


@trust.command(part_of="BlockedTerm")
class UnblockEmail:
    email = String(required=True, max_length=254)


@trust.command_handler(part_of=BlockedTerm)
class BlocklistHandler:
    @handle(AddBlockedWord)
    def add_blocked_word(self, command):
        word = _normalize(command.word, "word")
        _set_term(TermKind.WORD.value, word, active=True)
        logger.info("Blocked word added", word=word)
        return {"success": True, "word": word}

    @handle(RemoveBlockedWord)
    def remove_blocked_word(self, command):
        word = _normalize(command.word, "word")
        was_blocked = word in blocked_words()
        if was_blocked:
            _set_term(TermKind.WORD.value, word, active=False)
        return {"success": was_blocked, "word": word}

    @handle(BlockEmail)
    def block_email(self, command):
        email = _normalize(command.email, "email")
        _set_term(TermKind.EMAIL.value, email, active=True)
        logger.info("Email blocked", email=email)
        return {"success": True, "email": email}

    @handle(UnblockEmail)
    def unblock_email(self, command):
        email = _normalize(command.email, "email")
        was_blocked = email in blocked_emails()
        if was_blocked:
            _set_term(TermKind.EMAIL.value, email, active=False)
        return {"success": was_blocked, "email": email}
