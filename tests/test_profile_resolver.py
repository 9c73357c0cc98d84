from __future__ import annotations

import pytest

from reprofile.core.errors import (
    CyclicInheritanceError,
    InvalidModuleIdentifierError,
    MissingModulesError,
    ProfileInfoNotFoundError,
    RequirementsNotMetError,
    UnknownProfileError,
)
from reprofile.core.profiles.resolver import DependencyResolver, resolve
from tests.helpers.fakes import FakeExpander, FakeHost, ListLogger


def _resolver(host: FakeHost, *, expander=None, logger=None, default_profile: str = "standard") -> DependencyResolver:
    return DependencyResolver(
        profile_lookup=host,
        eligibility=host,
        nested_expander=expander,
        default_profile=default_profile,
        logger=logger,
    )


def _resolve(host: FakeHost, profile_id, **kw):
    return _resolver(host, **kw).resolve(
        profile_id,
        present_modules=host.list_present_modules(),
        enabled_modules=host.list_enabled_modules(),
    )


def test_profile_without_dependencies_resolves_to_itself(host):
    host.add_profile("bare")
    res = _resolve(host, "bare")
    assert res.to_enable == ("bare",)
    assert res.dependencies == ()
    assert res.profile_already_enabled is False
    assert res.inheritance_chain == ("bare",)


def test_enabled_profile_without_dependencies_is_an_empty_notice(host):
    host.add_profile("bare")
    host.enabled.add("bare")
    logger = ListLogger()
    res = _resolve(host, "bare", logger=logger)
    assert res.to_enable == ()
    assert res.is_empty
    assert res.profile_already_enabled is True
    assert res.notices == ("The bare profile is already enabled.",)
    assert logger.infos == ["The bare profile is already enabled."]


def test_base_profile_chain_unions_dependencies(host):
    host.add_profile("site", ["a", "b"], base_profile="mid")
    host.add_profile("mid", ["b", "c"], base_profile="root")
    host.add_profile("root", ["d", "a"])
    host.present |= {"a", "b", "c", "d"}

    res = _resolve(host, "site")
    assert res.dependencies == ("a", "b", "c", "d")
    assert res.inheritance_chain == ("site", "mid", "root")
    assert res.to_enable == ("site", "a", "b", "c", "d")
    assert host.fetch_calls == ["site", "mid", "root"]


def test_chain_union_does_not_depend_on_declaration_order(host):
    host.add_profile("site", ["x", "y"], base_profile="base")
    host.add_profile("base", ["z"])
    host.present |= {"x", "y", "z"}
    first = set(_resolve(host, "site").dependencies)

    other = FakeHost()
    other.add_profile("site", ["z"], base_profile="base")
    other.add_profile("base", ["y", "x"])
    other.present |= {"x", "y", "z"}
    assert set(_resolve(other, "site").dependencies) == first == {"x", "y", "z"}


def test_base_profiles_are_not_added_to_the_plan(host):
    host.add_profile("site", base_profile="base")
    host.add_profile("base", ["block"])
    host.present.add("block")
    res = _resolve(host, "site")
    assert res.to_enable == ("site", "block")


def test_cyclic_inheritance_is_rejected(host):
    host.add_profile("a", base_profile="b")
    host.add_profile("b", base_profile="c")
    host.add_profile("c", base_profile="a")
    with pytest.raises(CyclicInheritanceError) as ei:
        _resolve(host, "a")
    assert ei.value.chain == ["a", "b", "c", "a"]
    assert ei.value.code == "cyclic_inheritance"


def test_profile_that_is_its_own_base_is_rejected(host):
    host.add_profile("loop", base_profile="loop")
    with pytest.raises(CyclicInheritanceError) as ei:
        _resolve(host, "loop")
    assert ei.value.chain == ["loop", "loop"]


def test_unknown_profile_fails_before_lookup(host):
    host.add_profile("minimal")
    with pytest.raises(UnknownProfileError) as ei:
        _resolve(host, "nope")
    assert ei.value.profile_id == "nope"
    assert host.fetch_calls == []


def test_missing_base_profile_metadata_fails(host):
    host.add_profile("site", base_profile="gone")
    with pytest.raises(ProfileInfoNotFoundError) as ei:
        _resolve(host, "site")
    assert ei.value.profile_id == "gone"


def test_default_profile_used_when_none_given(host):
    host.add_profile("standard", ["block"])
    host.present.add("block")
    res = _resolve(host, None)
    assert res.profile_id == "standard"
    assert res.to_enable == ("standard", "block")


def test_configured_default_profile(host):
    host.add_profile("minimal")
    res = _resolve(host, "", default_profile="minimal")
    assert res.profile_id == "minimal"


def test_missing_modules_listed_in_dependency_order(host):
    host.add_profile("minimal", ["block", "views", "menu"])
    host.present.add("block")
    with pytest.raises(MissingModulesError) as ei:
        _resolve(host, "minimal")
    assert ei.value.missing == ["views", "menu"]
    assert "views, menu" in ei.value.user_message
    assert host.eligibility_calls == []


def test_ineligible_candidate_aborts_resolution(host):
    host.add_profile("minimal", ["block", "menu"])
    host.present |= {"block", "menu"}
    host.ineligible.add("menu")
    with pytest.raises(RequirementsNotMetError) as ei:
        _resolve(host, "minimal")
    assert ei.value.module_id == "menu"
    assert host.enable_calls == []


def test_first_ineligible_candidate_wins(host):
    host.add_profile("minimal", ["block", "menu"])
    host.present |= {"block", "menu"}
    host.ineligible |= {"block", "menu"}
    with pytest.raises(RequirementsNotMetError) as ei:
        _resolve(host, "minimal")
    assert ei.value.module_id == "block"
    assert host.eligibility_calls == ["minimal", "block"]


def test_only_candidates_are_eligibility_checked(host):
    host.add_profile("minimal", ["block", "menu"])
    host.present |= {"block", "menu"}
    host.enabled |= {"minimal", "block"}
    host.ineligible.add("block")
    res = _resolve(host, "minimal")
    assert res.to_enable == ("menu",)
    assert res.already_enabled == ("block",)
    assert host.eligibility_calls == ["menu"]


def test_each_candidate_is_checked_against_the_whole_plan(host):
    host.add_profile("minimal", ["block", "menu"])
    host.present |= {"block", "menu"}
    host.enabled.add("block")
    _resolve(host, "minimal")
    assert host.eligibility_calls == ["minimal", "menu"]
    assert host.eligibility_batches == [("minimal", "menu"), ("minimal", "menu")]


def test_nested_expansion_adds_transitive_dependencies(host):
    host.add_profile("minimal", ["block", "menu"])
    host.present |= {"block", "menu", "filter", "user"}
    expander = FakeExpander(graph={"block": ["filter"], "filter": ["user"], "menu": ["filter"]})
    res = _resolve(host, "minimal", expander=expander)
    assert res.dependencies == ("block", "menu", "filter", "user")
    assert res.nested_expanded is True
    assert expander.calls == [["block", "menu"]]


def test_nested_expansion_skipped_without_capability(host):
    host.add_profile("minimal", ["block"])
    host.present.add("block")
    res = _resolve(host, "minimal", expander=None)
    assert res.dependencies == ("block",)
    assert res.nested_expanded is False


def test_nested_expansion_result_set_is_ordered_deterministically(host):
    host.add_profile("minimal", ["block"])
    host.present |= {"block", "zeta", "alpha"}
    expander = FakeExpander(graph={"block": ["zeta", "alpha"]}, as_set=True)
    res = _resolve(host, "minimal", expander=expander)
    assert res.dependencies == ("block", "alpha", "zeta")


def test_nested_dependency_missing_from_codebase(host):
    host.add_profile("minimal", ["block"])
    host.present.add("block")
    expander = FakeExpander(graph={"block": ["filter"]})
    with pytest.raises(MissingModulesError) as ei:
        _resolve(host, "minimal", expander=expander)
    assert ei.value.missing == ["filter"]


def test_invalid_identifier_in_profile_dependencies(host):
    host.add_profile("minimal", ["block", "bad id"])
    with pytest.raises(InvalidModuleIdentifierError) as ei:
        _resolve(host, "minimal")
    assert ei.value.module_id == "bad id"
    assert ei.value.context["declared_by"] == "minimal"


def test_invalid_identifier_from_expander(host):
    host.add_profile("minimal", ["block"])
    host.present.add("block")
    expander = FakeExpander(graph={"block": ["../etc"]})
    with pytest.raises(InvalidModuleIdentifierError):
        _resolve(host, "minimal", expander=expander)


def test_identifier_comparison_is_case_sensitive(host):
    host.add_profile("minimal", ["block"])
    host.present |= {"block", "Block"}
    host.enabled.add("Block")
    res = _resolve(host, "minimal")
    assert res.to_enable == ("minimal", "block")


def test_resolution_is_idempotent(host):
    host.add_profile("site", ["a", "b"], base_profile="base")
    host.add_profile("base", ["c"])
    host.present |= {"a", "b", "c"}
    host.enabled.add("b")
    assert _resolve(host, "site") == _resolve(host, "site")


def test_resolve_function_wraps_resolver(host):
    host.add_profile("minimal", ["block"])
    host.present.add("block")
    res = resolve("minimal", host, host.list_present_modules(), set(), eligibility=host)
    assert list(res) == ["minimal", "block"]
    assert len(res) == 2
