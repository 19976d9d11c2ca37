"""Tests for identity resolution precedence."""

import re
from datetime import UTC, datetime

import pytest

from src.teamops.services.identity.exceptions import MissingSubjectError
from src.teamops.services.identity.models import IdentityClaims, UserProfile
from src.teamops.services.identity.resolver import (
    candidate_display_name,
    is_meaningful,
    resolve,
    to_handle,
)

HANDLE_CHARSET = re.compile(r"^[a-z0-9_.-]*$")


@pytest.fixture
def stored_profile() -> UserProfile:
    """Profile already on file for auth0|1."""
    return UserProfile(
        user_sub="auth0|1",
        email="jane@example.com",
        display_name="Jane Doe",
        picture_url="https://cdn.example.com/jane.png",
        handle="jane-doe",
    )


class TestToHandle:
    """Tests for handle derivation."""

    @pytest.mark.parametrize(
        "label, expected",
        [
            ("Jane Doe", "jane-doe"),
            ("  Jane   Doe  ", "jane-doe"),
            ("jane.doe@example.com", "jane.doe-example.com"),
            ("Ops Team (EMEA)!", "ops-team-emea"),
            ("auth0|123", "auth0-123"),
            ("__under_score__", "under_score"),
            ("._Jane_.", "jane"),
            ("-.Ops._Team_.-", "ops._team"),
            ("Éclair Müller", "clair-m-ller"),
            ("", ""),
            ("!!!", ""),
        ],
    )
    def test_derivation(self, label: str, expected: str) -> None:
        assert to_handle(label) == expected

    def test_none_is_empty(self) -> None:
        assert to_handle(None) == ""

    def test_truncates_to_32_without_trailing_separator(self) -> None:
        label = "a" * 31 + " bcdef"
        handle = to_handle(label)

        assert len(handle) <= 32
        assert not handle.endswith("-")
        assert handle == "a" * 31

    def test_truncation_never_ends_on_punctuation(self) -> None:
        assert to_handle("a" * 30 + "._b") == "a" * 30

    @pytest.mark.parametrize(
        "label",
        [
            "Jane Doe",
            "  --Weird__Name.. ",
            "google-oauth2|1099887766",
            "x" * 80,
            "Ops / On-Call / Tier 2 / Primary Rotation",
            "日本語の名前",
        ],
    )
    def test_idempotent_and_charset(self, label: str) -> None:
        handle = to_handle(label)

        assert to_handle(handle) == handle
        assert HANDLE_CHARSET.match(handle)
        assert len(handle) <= 32
        assert not handle.startswith(("-", ".", "_"))
        assert not handle.endswith(("-", ".", "_"))


class TestCandidate:
    """Tests for candidate display name selection."""

    def test_prefers_name(self) -> None:
        claims = IdentityClaims(sub="auth0|1", name="Jane", nickname="jd", email="j@x.io")
        assert candidate_display_name(claims) == "Jane"

    def test_falls_through_in_order(self) -> None:
        assert candidate_display_name(IdentityClaims(sub="s", nickname="jd", email="e@x")) == "jd"
        assert candidate_display_name(IdentityClaims(sub="s", preferred_username="pu")) == "pu"
        assert candidate_display_name(IdentityClaims(sub="s", email="e@x")) == "e@x"
        assert candidate_display_name(IdentityClaims(sub="auth0|1")) == "auth0|1"

    def test_blank_values_are_skipped(self) -> None:
        claims = IdentityClaims(sub="auth0|1", name="   ", nickname="jd")
        assert candidate_display_name(claims) == "jd"

    @pytest.mark.parametrize(
        "candidate, subject, expected",
        [
            ("Jane Doe", "auth0|1", True),
            ("jane@example.com", "auth0|1", True),
            ("auth0|1", "auth0|1", False),
            ("google-oauth2|55", "auth0|1", False),
            ("", "auth0|1", False),
            ("plainsub", "plainsub", False),
        ],
    )
    def test_is_meaningful(self, candidate: str, subject: str, expected: bool) -> None:
        assert is_meaningful(candidate, subject) is expected


class TestResolve:
    """Tests for the resolve precedence rules."""

    def test_missing_subject_raises(self) -> None:
        with pytest.raises(MissingSubjectError):
            resolve(IdentityClaims(name="Jane"))

    def test_blank_subject_raises(self) -> None:
        with pytest.raises(MissingSubjectError):
            resolve(IdentityClaims(sub="   ", name="Jane"))

    def test_first_write_with_full_claims(self) -> None:
        claims = IdentityClaims(
            sub="auth0|1", name="Jane Doe", email="jane@example.com", picture="https://p/j.png"
        )

        resolved = resolve(claims)

        assert resolved.user_sub == "auth0|1"
        assert resolved.display_name == "Jane Doe"
        assert resolved.handle == "jane-doe"
        assert resolved.email == "jane@example.com"
        assert resolved.picture_url == "https://p/j.png"
        assert resolved.name_authoritative is True
        assert resolved.handle_derived is True

    def test_first_write_with_only_subject_stores_subject(self) -> None:
        """First write always stores something, even when only sub is known."""
        resolved = resolve(IdentityClaims(sub="auth0|abc"))

        assert resolved.display_name == "auth0|abc"
        assert resolved.handle == "auth0-abc"
        assert resolved.name_authoritative is False
        assert resolved.email is None

    def test_first_write_with_unhandleable_subject_uses_subject(self) -> None:
        resolved = resolve(IdentityClaims(sub="|||"))

        assert resolved.display_name == "|||"
        assert resolved.handle == "|||"

    def test_sub_only_claims_keep_stored_name(self, stored_profile: UserProfile) -> None:
        """A subject-only access token must not regress a real name."""
        resolved = resolve(IdentityClaims(sub="auth0|1"), stored_profile)

        assert resolved.display_name == "Jane Doe"
        assert resolved.handle == "jane-doe"
        assert resolved.email == "jane@example.com"
        assert resolved.picture_url == "https://cdn.example.com/jane.png"
        assert resolved.name_authoritative is False

    def test_provider_qualified_candidate_keeps_stored_name(
        self, stored_profile: UserProfile
    ) -> None:
        resolved = resolve(
            IdentityClaims(sub="auth0|1", nickname="google-oauth2|998877"), stored_profile
        )

        assert resolved.display_name == "Jane Doe"
        assert resolved.handle == "jane-doe"

    def test_provider_qualified_candidate_never_replaces_subject_name(self) -> None:
        existing = UserProfile(user_sub="auth0|1", display_name="auth0|1", handle="auth0-1")

        resolved = resolve(IdentityClaims(sub="auth0|1", nickname="github|42"), existing)

        assert resolved.display_name == "auth0|1"
        assert resolved.handle == "auth0-1"

    def test_meaningful_name_replaces_and_rederives_handle(
        self, stored_profile: UserProfile
    ) -> None:
        resolved = resolve(IdentityClaims(sub="auth0|1", name="Jane Smith"), stored_profile)

        assert resolved.display_name == "Jane Smith"
        assert resolved.handle == "jane-smith"
        assert resolved.name_authoritative is True

    def test_meaningful_name_upgrades_subject_placeholder(self) -> None:
        existing = UserProfile(user_sub="auth0|1", display_name="auth0|1", handle="auth0-1")

        resolved = resolve(IdentityClaims(sub="auth0|1", email="jane@example.com"), existing)

        assert resolved.display_name == "jane@example.com"
        assert resolved.handle == "jane-example.com"

    def test_same_name_keeps_existing_handle(self) -> None:
        existing = UserProfile(user_sub="auth0|1", display_name="Jane Doe", handle="jd-custom")

        resolved = resolve(IdentityClaims(sub="auth0|1", name="Jane Doe"), existing)

        assert resolved.handle == "jd-custom"

    def test_name_without_handle_characters_keeps_existing_handle(
        self, stored_profile: UserProfile
    ) -> None:
        resolved = resolve(IdentityClaims(sub="auth0|1", name="山田太郎"), stored_profile)

        assert resolved.display_name == "山田太郎"
        assert resolved.handle == "jane-doe"
        assert resolved.handle_derived is False

    def test_new_email_and_picture_replace_stored(self, stored_profile: UserProfile) -> None:
        resolved = resolve(
            IdentityClaims(sub="auth0|1", email="new@example.com", picture="https://p/new.png"),
            stored_profile,
        )

        assert resolved.email == "new@example.com"
        assert resolved.picture_url == "https://p/new.png"

    def test_last_seen_uses_given_time(self) -> None:
        moment = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)

        resolved = resolve(IdentityClaims(sub="auth0|1"), now=moment)

        assert resolved.last_seen == moment

    def test_upsert_params(self) -> None:
        resolved = resolve(IdentityClaims(sub="auth0|1", name="Jane Doe"))

        assert resolved.to_upsert_params() == {
            "p_user_sub": "auth0|1",
            "p_email": None,
            "p_display_name": "Jane Doe",
            "p_picture_url": None,
            "p_handle": "jane-doe",
            "p_name_authoritative": True,
            "p_handle_derived": True,
        }

    def test_repeated_resolution_is_stable(self, stored_profile: UserProfile) -> None:
        """Resolving twice with the same claims yields the same profile."""
        claims = IdentityClaims(sub="auth0|1", name="Jane Smith")

        first = resolve(claims, stored_profile).as_profile()
        second = resolve(claims, first)

        assert second.display_name == first.display_name
        assert second.handle == first.handle
