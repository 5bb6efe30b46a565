"""
tests/test_profile_service.py -- Tests for profiles/service.py.

Covers:
  - parse_skills: trimming, lenient vs strict handling of empty elements
  - sparse_fields / merge_profile: only supplied fields overwrite, social
    merges per key, user_id untouched
  - find_removal_index: corrected vs legacy positional rule
  - login / register_user: credential errors are indistinguishable
  - upsert_profile: create, merge, idempotence
  - add_* prepend order, remove_* in both removal modes
  - delete_account removes profile and user
"""

from __future__ import annotations

import pytest

from auth.tokens import decode_access_token
from core.errors import InvalidCredentials, NotFound, ValidationError
from profiles import service
from profiles.models import Education, Experience, Profile, ProfileUpdate

TEST_PASSWORD = "testpass123"


def _exp(title: str) -> Experience:
    return Experience(title=title, company="Acme", from_date="2020-01-01")


def _edu(school: str) -> Education:
    return Education(school=school, degree="BSc", fieldofstudy="CS", from_date="2015-09-01")


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


class TestParseSkills:
    def test_trims_each_element(self) -> None:
        assert service.parse_skills("node, express,  mongo") == ["node", "express", "mongo"]

    def test_lenient_keeps_trailing_empty_element(self) -> None:
        assert service.parse_skills("node, express,") == ["node", "express", ""]

    def test_strict_drops_empty_elements(self) -> None:
        assert service.parse_skills("node, , express,", strict=True) == ["node", "express"]

    def test_single_skill(self) -> None:
        assert service.parse_skills("  python ") == ["python"]


class TestSparseFields:
    def test_only_supplied_fields_present(self) -> None:
        fields = service.sparse_fields(ProfileUpdate(status="Developer", company=""))
        assert fields == {"status": "Developer"}

    def test_skills_are_split(self) -> None:
        fields = service.sparse_fields(ProfileUpdate(skills="a, b"))
        assert fields["skills"] == ["a", "b"]

    def test_strict_skills_passed_through(self) -> None:
        fields = service.sparse_fields(ProfileUpdate(skills="a,,b"), strict_skills=True)
        assert fields["skills"] == ["a", "b"]

    def test_social_nested(self) -> None:
        fields = service.sparse_fields(ProfileUpdate(twitter="https://twitter.com/x", youtube=""))
        assert fields == {"social": {"twitter": "https://twitter.com/x"}}

    def test_nothing_supplied(self) -> None:
        assert service.sparse_fields(ProfileUpdate()) == {}


class TestMergeProfile:
    def test_merge_keeps_unsupplied_fields(self) -> None:
        profile = Profile(user_id="u1", company="A", status="Old")
        merged = service.merge_profile(profile, {"status": "B"})
        assert merged.company == "A"
        assert merged.status == "B"

    def test_merge_does_not_mutate_input(self) -> None:
        profile = Profile(user_id="u1", company="A")
        service.merge_profile(profile, {"company": "B"})
        assert profile.company == "A"

    def test_social_merges_per_key(self) -> None:
        profile = Profile(user_id="u1", social={"twitter": "t", "youtube": "y"})
        merged = service.merge_profile(profile, {"social": {"youtube": "y2", "linkedin": "l"}})
        assert merged.social == {"twitter": "t", "youtube": "y2", "linkedin": "l"}

    def test_sub_collections_untouched(self) -> None:
        exp = _exp("Dev")
        profile = Profile(user_id="u1", experience=[exp])
        merged = service.merge_profile(profile, {"status": "x"})
        assert merged.experience == [exp]
        assert merged.user_id == "u1"


class TestFindRemovalIndex:
    def _records(self) -> list[Experience]:
        records = [_exp("a"), _exp("b"), _exp("c")]
        for i, r in enumerate(records):
            r.id = f"id{i}"
        return records

    @pytest.mark.parametrize(("sub_id", "expected"), [("id0", 0), ("id1", 1), ("id2", 2), ("missing", None)])
    def test_corrected(self, sub_id: str, expected: int | None) -> None:
        assert service.find_removal_index(self._records(), sub_id) == expected

    @pytest.mark.parametrize(("sub_id", "expected"), [("id0", None), ("id1", 1), ("id2", 2), ("missing", None)])
    def test_legacy_never_removes_position_zero(self, sub_id: str, expected: int | None) -> None:
        assert service.find_removal_index(self._records(), sub_id, legacy=True) == expected


def test_gravatar_url_normalizes_email() -> None:
    assert service.gravatar_url(" Ada@Example.com ") == service.gravatar_url("ada@example.com")
    assert service.gravatar_url("ada@example.com").startswith("//www.gravatar.com/avatar/")


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class TestLogin:
    def test_success_returns_token_for_user(self, stores, make_user) -> None:
        user_store, _ = stores
        uid = make_user(email="ada@example.com")
        token = service.login(user_store, "ada@example.com", TEST_PASSWORD)
        assert decode_access_token(token) == uid

    def test_unknown_email_and_wrong_password_look_the_same(self, stores, make_user) -> None:
        user_store, _ = stores
        make_user(email="ada@example.com")
        with pytest.raises(InvalidCredentials) as unknown:
            service.login(user_store, "nobody@example.com", TEST_PASSWORD)
        with pytest.raises(InvalidCredentials) as wrong:
            service.login(user_store, "ada@example.com", "wrong-password")
        assert unknown.value.message == wrong.value.message
        assert unknown.value.status_code == wrong.value.status_code == 400


class TestRegisterUser:
    def test_creates_user_with_hashed_password_and_avatar(self, stores) -> None:
        user_store, _ = stores
        token = service.register_user(user_store, "Ada", "ada@example.com", "s3cret!")
        user = user_store.get_by_email("ada@example.com")
        assert user is not None
        assert decode_access_token(token) == user.id
        assert user.hashed_password != "s3cret!"
        assert user.avatar == service.gravatar_url("ada@example.com")

    def test_duplicate_email_rejected(self, stores, make_user) -> None:
        user_store, _ = stores
        make_user(email="ada@example.com")
        with pytest.raises(ValidationError) as excinfo:
            service.register_user(user_store, "Ada", "ada@example.com", "s3cret!")
        assert excinfo.value.errors == [{"msg": "User already exists"}]


class TestDeleteAccount:
    def test_removes_profile_and_user(self, stores, make_user) -> None:
        user_store, profile_store = stores
        uid = make_user()
        service.upsert_profile(profile_store, uid, ProfileUpdate(status="Dev", skills="python"))

        service.delete_account(user_store, profile_store, uid)

        assert user_store.get_by_id(uid) is None
        with pytest.raises(NotFound):
            service.get_current_profile(profile_store, uid)

    def test_without_profile_still_removes_user(self, stores, make_user) -> None:
        user_store, profile_store = stores
        uid = make_user()
        service.delete_account(user_store, profile_store, uid)
        assert user_store.get_by_id(uid) is None

    def test_malformed_id(self, stores) -> None:
        user_store, profile_store = stores
        with pytest.raises(NotFound):
            service.delete_account(user_store, profile_store, "not-an-id")


# ---------------------------------------------------------------------------
# Profile reads
# ---------------------------------------------------------------------------


class TestReads:
    def test_current_profile_missing(self, stores, make_user) -> None:
        _, profile_store = stores
        uid = make_user()
        with pytest.raises(NotFound) as excinfo:
            service.get_current_profile(profile_store, uid)
        assert excinfo.value.message == "There is no profile for this user"

    def test_profile_by_user_joins_name_and_avatar(self, stores, make_user) -> None:
        _, profile_store = stores
        uid = make_user(name="Ada")
        service.upsert_profile(profile_store, uid, ProfileUpdate(status="Dev", skills="python"))
        profile = service.get_profile_by_user(profile_store, uid)
        assert profile.user_name == "Ada"
        assert profile.user_avatar

    @pytest.mark.parametrize("user_id", ["not-an-id", "0" * 24])
    def test_profile_by_user_not_found(self, stores, user_id: str) -> None:
        _, profile_store = stores
        with pytest.raises(NotFound) as excinfo:
            service.get_profile_by_user(profile_store, user_id)
        assert excinfo.value.message == "Profile not found"

    def test_list_profiles_empty(self, stores) -> None:
        _, profile_store = stores
        assert service.list_profiles(profile_store) == []


# ---------------------------------------------------------------------------
# Profile mutations
# ---------------------------------------------------------------------------


class TestUpsertProfile:
    def test_creates_profile_owned_by_caller(self, stores, make_user) -> None:
        _, profile_store = stores
        uid = make_user()
        profile = service.upsert_profile(
            profile_store,
            uid,
            ProfileUpdate(status="Developer", skills="node, express,  mongo", linkedin="https://linkedin.com/in/x"),
        )
        assert profile.user_id == uid
        assert profile.skills == ["node", "express", "mongo"]
        assert profile.social == {"linkedin": "https://linkedin.com/in/x"}
        assert profile.id is not None

    def test_merge_update(self, stores, make_user) -> None:
        _, profile_store = stores
        uid = make_user()
        service.upsert_profile(profile_store, uid, ProfileUpdate(status="Dev", skills="python", company="A"))
        profile = service.upsert_profile(profile_store, uid, ProfileUpdate(status="B"))
        assert profile.company == "A"
        assert profile.status == "B"
        assert profile.skills == ["python"]

    def test_idempotent(self, stores, make_user) -> None:
        _, profile_store = stores
        uid = make_user()
        update = ProfileUpdate(status="Dev", skills="a, b", bio="hi", twitter="https://twitter.com/x")
        once = service.upsert_profile(profile_store, uid, update)
        twice = service.upsert_profile(profile_store, uid, update)
        assert once == twice
        assert len(service.list_profiles(profile_store)) == 1

    def test_keeps_sub_collections(self, stores, make_user) -> None:
        _, profile_store = stores
        uid = make_user()
        service.upsert_profile(profile_store, uid, ProfileUpdate(status="Dev", skills="python"))
        service.add_experience(profile_store, uid, _exp("Dev"))
        profile = service.upsert_profile(profile_store, uid, ProfileUpdate(bio="new bio"))
        assert [e.title for e in profile.experience] == ["Dev"]

    def test_lenient_skills_default(self, stores, make_user) -> None:
        _, profile_store = stores
        uid = make_user()
        profile = service.upsert_profile(profile_store, uid, ProfileUpdate(status="Dev", skills="a, b,"))
        assert profile.skills == ["a", "b", ""]

    def test_strict_skills(self, stores, make_user) -> None:
        _, profile_store = stores
        uid = make_user()
        profile = service.upsert_profile(
            profile_store, uid, ProfileUpdate(status="Dev", skills="a, b,"), strict_skills=True
        )
        assert profile.skills == ["a", "b"]


class TestSubRecords:
    @pytest.fixture
    def owner(self, stores, make_user) -> str:
        _, profile_store = stores
        uid = make_user()
        service.upsert_profile(profile_store, uid, ProfileUpdate(status="Dev", skills="python"))
        return uid

    def test_add_experience_prepends(self, stores, owner: str) -> None:
        _, profile_store = stores
        service.add_experience(profile_store, owner, _exp("R1"))
        profile = service.add_experience(profile_store, owner, _exp("R2"))
        assert [e.title for e in profile.experience] == ["R2", "R1"]
        stored = service.get_current_profile(profile_store, owner)
        assert [e.title for e in stored.experience] == ["R2", "R1"]

    def test_add_assigns_fresh_distinct_ids(self, stores, owner: str) -> None:
        _, profile_store = stores
        service.add_experience(profile_store, owner, _exp("R1"))
        profile = service.add_experience(profile_store, owner, _exp("R2"))
        ids = [e.id for e in profile.experience]
        assert all(ids)
        assert len(set(ids)) == 2
        assert profile.id not in ids

    def test_add_education_prepends(self, stores, owner: str) -> None:
        _, profile_store = stores
        service.add_education(profile_store, owner, _edu("First"))
        profile = service.add_education(profile_store, owner, _edu("Second"))
        assert [e.school for e in profile.education] == ["Second", "First"]

    def test_add_without_profile(self, stores, make_user) -> None:
        _, profile_store = stores
        uid = make_user(email="noprofile@example.com")
        with pytest.raises(NotFound):
            service.add_experience(profile_store, uid, _exp("R1"))
        with pytest.raises(NotFound):
            service.add_education(profile_store, uid, _edu("S"))

    def test_remove_experience_at_head(self, stores, owner: str) -> None:
        _, profile_store = stores
        service.add_experience(profile_store, owner, _exp("R1"))
        profile = service.add_experience(profile_store, owner, _exp("R2"))
        head_id = profile.experience[0].id

        profile = service.remove_experience(profile_store, owner, head_id, legacy_removal=False)

        assert [e.title for e in profile.experience] == ["R1"]
        stored = service.get_current_profile(profile_store, owner)
        assert [e.title for e in stored.experience] == ["R1"]

    def test_remove_experience_at_head_legacy_is_noop(self, stores, owner: str) -> None:
        _, profile_store = stores
        service.add_experience(profile_store, owner, _exp("R1"))
        profile = service.add_experience(profile_store, owner, _exp("R2"))
        head_id = profile.experience[0].id

        profile = service.remove_experience(profile_store, owner, head_id, legacy_removal=True)

        assert [e.title for e in profile.experience] == ["R2", "R1"]

    @pytest.mark.parametrize("legacy", [False, True])
    def test_remove_experience_past_head(self, stores, owner: str, legacy: bool) -> None:
        _, profile_store = stores
        service.add_experience(profile_store, owner, _exp("R1"))
        profile = service.add_experience(profile_store, owner, _exp("R2"))
        tail_id = profile.experience[1].id

        profile = service.remove_experience(profile_store, owner, tail_id, legacy_removal=legacy)

        assert [e.title for e in profile.experience] == ["R2"]

    @pytest.mark.parametrize("legacy", [False, True])
    def test_remove_unknown_id_returns_unchanged_profile(self, stores, owner: str, legacy: bool) -> None:
        _, profile_store = stores
        service.add_experience(profile_store, owner, _exp("R1"))
        profile = service.remove_experience(profile_store, owner, "f" * 24, legacy_removal=legacy)
        assert [e.title for e in profile.experience] == ["R1"]

    def test_remove_education(self, stores, owner: str) -> None:
        _, profile_store = stores
        service.add_education(profile_store, owner, _edu("First"))
        profile = service.add_education(profile_store, owner, _edu("Second"))
        profile = service.remove_education(profile_store, owner, profile.education[1].id, legacy_removal=False)
        assert [e.school for e in profile.education] == ["Second"]

    def test_remove_without_profile(self, stores, make_user) -> None:
        _, profile_store = stores
        uid = make_user(email="noprofile@example.com")
        with pytest.raises(NotFound):
            service.remove_experience(profile_store, uid, "f" * 24)
        with pytest.raises(NotFound):
            service.remove_education(profile_store, uid, "f" * 24)
