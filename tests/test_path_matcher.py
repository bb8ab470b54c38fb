"""Tests for ElementPathMatcher: compilation, matching and subtree pruning."""

import logging
from itertools import permutations

import pytest

from helpers import ARTIFACT_GROUP, artifact_ref, path_of, ref
from refgraph_cli.element_matcher import AnySequenceElement
from refgraph_cli.errors import PatternErrorKind, PatternParseError
from refgraph_cli.models import ArtifactGroupId, ArtifactVersion, ModuleVersion, Reference
from refgraph_cli.node_path import NodePath
from refgraph_cli.path_matcher import (
    ElementMatcherGroup,
    ElementPathMatcher,
    ModuleMatcher,
    split_elements,
)
from refgraph_cli.reference_path import ReferencePath


MODULES = ["D/a:D/master", "D/b:S/1", "D/c:S/1", "D/d:D/dev"]

PATTERNS = [
    "*",
    "**",
    "/D/a",
    "**->/D/a:(D/.*)",
    "*->/D/a->**",
    "/D/a->**->/D/a",
    "/D/a->**->/D/c",
    "/D/a->*",
    "/D/b->*->/D/a",
    "**->/D/b->*->**",
    "**->/D/b->**->/D/c->**",
    "/(D/[ab])->**->*->/D/d",
    "*->**->/D/c->*",
    "**->/D/a->/D/b->**->/D/c->/D/d->**",
    "**->*->**->*->**",
    "**->/(D/[ab])->**->/(D/[bc])->**",
    "/D/a:S/9->**",
    "com.acme:lib-c->**",
    "**->/D/b->**->/D/a",
    "*->*->/D/c->**->/D/d",
    "*:",
    "**:->**",
]

ALL_PATHS = [
    path_of(*modules)
    for length in range(len(MODULES) + 1)
    for modules in permutations(MODULES, length)
]

ARTIFACT_PATTERNS = [
    "com.acme:a->**",
    "**->com.acme:c",
    "*->com.acme:b->**",
    "**->com.acme:b->**->com.acme:d->**",
    "com.acme:a:1.0->**->/D/c",
    "**->com.acme:(b|c)->*",
    "/D/a->com.acme:c->**",
    "**->com.acme:d->**->com.acme:a",
    "com.acme:b:2.0->**",
]

# Every reference carries the artifact its module produces.
ARTIFACT_PATHS = [
    ReferencePath(artifact_ref(module) for module in modules)
    for length in range(len(MODULES) + 1)
    for modules in permutations(MODULES, length)
]


def compile_pattern(literal, registry=None):
    return ElementPathMatcher.parse(literal, registry)


def prefixes(path):
    references = list(path)
    return [ReferencePath(references[:length]) for length in range(len(references))]


def brute_force_matches(elements, references):
    if not elements:
        return not references
    head, rest = elements[0], elements[1:]
    if isinstance(head, AnySequenceElement):
        return any(brute_force_matches(rest, references[i:]) for i in range(len(references) + 1))
    return bool(references) and head.matches(references[0]) and brute_force_matches(rest, references[1:])


class TestCompile:
    """Tests for pattern compilation."""

    def test_split_elements(self):
        assert split_elements("*->/A/b->**") == [(0, 1), (3, 7), (9, 11)]
        assert split_elements("") == [(0, 0)]

    def test_empty_pattern(self):
        with pytest.raises(PatternParseError) as exc_info:
            compile_pattern("")

        assert exc_info.value.kind is PatternErrorKind.EMPTY_ELEMENT

    def test_empty_middle_element(self):
        with pytest.raises(PatternParseError) as exc_info:
            compile_pattern("/A/b->->**")

        assert exc_info.value.kind is PatternErrorKind.EMPTY_ELEMENT
        assert exc_info.value.position == 6

    def test_error_message_names_element(self):
        with pytest.raises(PatternParseError) as exc_info:
            compile_pattern("**->/(D/a")

        assert "'/(D/a'" in str(exc_info.value)
        assert "position 5" in str(exc_info.value)

    def test_module_matchers(self):
        matcher = compile_pattern("*->/D/a->**->/D/b->*->**->/D/c")

        assert matcher.module_matchers == (
            ModuleMatcher(NodePath.parse("D/a"), 1, 1, 1),
            ModuleMatcher(NodePath.parse("D/b"), 0, None, 3),
            ModuleMatcher(NodePath.parse("D/c"), 1, None, 6),
        )

    def test_groups(self):
        matcher = compile_pattern("*->**->/D/a->*->**->**->/D/b->**->/D/c")

        assert matcher.groups == (
            ElementMatcherGroup(2, 2, 3),
            ElementMatcherGroup(5, 0, 1),
            ElementMatcherGroup(6, 1, 1),
        )
        assert matcher.fixed_length == 5
        assert not matcher.is_fixed_length

    def test_artifact_element_resolved(self, registry):
        matcher = compile_pattern("com.acme:lib-b->**", registry)

        assert matcher.elements[0].pinned_module == NodePath.parse("Domain1/lib-b")
        assert matcher.module_matchers[0].node_path == NodePath.parse("Domain1/lib-b")

    def test_unresolvable_artifact(self, registry):
        with pytest.raises(PatternParseError) as exc_info:
            compile_pattern("**->com.acme:lib-z", registry)

        assert exc_info.value.kind is PatternErrorKind.UNRESOLVABLE_ARTIFACT_MODULE
        assert exc_info.value.element == "com.acme:lib-z"
        assert exc_info.value.position == 4

    def test_artifact_without_resolver(self):
        with pytest.raises(PatternParseError) as exc_info:
            compile_pattern("com.acme:lib-b")

        assert exc_info.value.kind is PatternErrorKind.UNRESOLVABLE_ARTIFACT_MODULE

    def test_artifact_regex_needs_no_resolution(self):
        matcher = compile_pattern("com.acme:(lib-.*)")

        assert matcher.module_matchers == ()

    def test_compile_is_logged(self, caplog):
        caplog.set_level(logging.DEBUG, logger="refgraph_cli.path_matcher")

        compile_pattern("/D/a->**")

        assert "Compiled pattern '/D/a->**'" in caplog.text


class TestEquality:
    def test_structural_equality(self):
        assert compile_pattern("/D/a->**") == compile_pattern("/D/a->**")
        assert compile_pattern("/D/a->**") != compile_pattern("/D/a->*")
        assert compile_pattern("/(D/.*)") == compile_pattern("/(D/.*)")
        assert hash(compile_pattern("/(D/.*)->**")) == hash(compile_pattern("/(D/.*)->**"))

    def test_normalized_elements_compare_equal(self):
        assert compile_pattern("/->**") == compile_pattern("*->**")

    def test_str(self):
        assert str(compile_pattern("/->/D/a:(D/.*)->**")) == "*->/D/a:(D/.*)->**"

    def test_wildcard_group_id_keeps_separator(self):
        assert str(compile_pattern("*:")) == "*:"
        assert str(compile_pattern("**:->**")) == "**:->**"
        assert compile_pattern("*:") != compile_pattern("*")


class TestMatchesExamples:
    """Documented behaviour of matches()."""

    def test_single_module(self):
        matcher = compile_pattern("/Domain1/app-a")

        assert matcher.matches(path_of("Domain1/app-a:D/master"))
        assert matcher.matches(path_of("Domain1/app-a:S/1.0"))
        assert not matcher.matches(path_of("Domain1/app-b:D/master"))
        assert not matcher.matches(path_of("Domain1/app-a:D/master", "Domain1/lib:S/1"))
        assert not matcher.matches(ReferencePath())

    def test_last_element_dynamic(self):
        matcher = compile_pattern("**->/Domain1/app-a:(D/.*)")

        assert matcher.matches(path_of("Domain1/app-a:D/master"))
        assert matcher.matches(path_of("X/x:S/1", "Y/y:S/1", "Domain1/app-a:D/feature"))
        assert not matcher.matches(path_of("X/x:S/1", "Domain1/app-a:S/1.0"))
        assert not matcher.matches(path_of("Domain1/app-a:D/master", "X/x:S/1"))

    def test_second_element(self):
        matcher = compile_pattern("*->/Domain1/app-a->**")

        assert not matcher.matches(path_of("Domain1/app-a:D/master"))
        assert matcher.matches(path_of("X/x:S/1", "Domain1/app-a:D/master"))
        assert matcher.matches(path_of("X/x:S/1", "Domain1/app-a:D/master", "Y/y:S/1", "Z/z:S/1"))
        assert not matcher.matches(path_of("X/x:S/1", "Y/y:S/1", "Domain1/app-a:D/master"))

    def test_any(self):
        matcher = compile_pattern("*")

        assert matcher.matches(path_of("X/x"))
        assert matcher.matches(ReferencePath([Reference(artifact_group_id=ArtifactGroupId("g", "a"))]))
        assert not matcher.matches(ReferencePath())
        assert not matcher.matches(path_of("X/x", "Y/y"))

    def test_any_sequence(self):
        matcher = compile_pattern("**")

        for path in ALL_PATHS:
            assert matcher.matches(path)

    def test_interior_groups_slide(self):
        matcher = compile_pattern("**->/D/a->/D/b->**->/D/c->**")

        assert matcher.matches(path_of("D/a", "D/b", "D/c"))
        assert matcher.matches(path_of("X/x", "D/a", "D/b", "Y/y", "D/c", "Z/z"))
        assert not matcher.matches(path_of("D/a", "Y/y", "D/b", "D/c"))
        assert not matcher.matches(path_of("D/c", "D/a", "D/b"))

    def test_group_leaves_room_for_following_groups(self):
        matcher = compile_pattern("**->/(X/.*)->**->/(X/.*)->**")

        assert matcher.matches(path_of("X/a", "X/b"))
        assert not matcher.matches(path_of("X/a", "Y/b"))

    def test_artifact_pattern(self, registry):
        matcher = compile_pattern("**->com.acme:lib-b:(.*-SNAPSHOT)", registry)
        snapshot = Reference(
            module_version=ModuleVersion.parse("Domain1/lib-b:D/master"),
            artifact_group_id=ArtifactGroupId("com.acme", "lib-b"),
            artifact_version=ArtifactVersion.parse("master-SNAPSHOT"),
        )

        assert matcher.matches(ReferencePath([ref("Domain2/app-c:D/develop"), snapshot]))
        assert not matcher.matches(path_of("Domain2/app-c:D/develop", "Domain1/lib-b:D/master"))


class TestCanMatchChildren:
    """Documented behaviour of can_match_children()."""

    def test_revisit_forbidden(self):
        matcher = compile_pattern("/A/a->**->/A/a")

        assert not matcher.can_match_children(path_of("A/a"))

    def test_fixed_pattern_exhausted(self):
        matcher = compile_pattern("/D/a->*")

        assert matcher.can_match_children(path_of("D/a"))
        assert not matcher.can_match_children(path_of("D/a", "D/b"))

    def test_first_module_mismatch(self):
        matcher = compile_pattern("/D/a->**")

        assert matcher.can_match_children(ReferencePath())
        assert matcher.can_match_children(path_of("D/a", "D/b"))
        assert not matcher.can_match_children(path_of("D/b"))

    def test_pinned_module_too_early(self):
        matcher = compile_pattern("*->/D/a->**")

        assert not matcher.can_match_children(path_of("D/a"))
        assert matcher.can_match_children(path_of("X/x"))
        assert matcher.can_match_children(path_of("X/x", "D/a"))

    def test_pinned_module_version_mismatch(self):
        matcher = compile_pattern("/D/a:S/9->**")

        assert not matcher.can_match_children(path_of("D/a:D/master"))
        assert matcher.can_match_children(path_of("D/a:S/9"))

    def test_prefix_inconsistent(self):
        matcher = compile_pattern("/(X/.*)->/D/a->**")

        assert not matcher.can_match_children(path_of("Y/y", "D/a"))
        assert matcher.can_match_children(path_of("X/x", "D/a"))

    def test_unbounded_window(self):
        matcher = compile_pattern("**->/D/b->**->/D/c->**")

        assert matcher.can_match_children(path_of("X/x", "Y/y", "D/b"))
        assert not matcher.can_match_children(path_of("D/c", "D/b"))

    def test_unknown_modules_are_not_pruned(self):
        matcher = compile_pattern("/D/a->*")
        artifact_only = Reference(artifact_group_id=ArtifactGroupId("g", "a"))

        assert matcher.can_match_children(ReferencePath([artifact_only, artifact_only]))

    def test_artifact_pinned(self, registry):
        matcher = compile_pattern("com.acme:lib-b->**", registry)

        assert not matcher.can_match_children(path_of("Domain1/app-a:D/master"))

    def test_never_raises_on_artifact_elements(self):
        matcher = compile_pattern("com.acme:lib-c->**", _FixedResolver())

        for path in ALL_PATHS:
            matcher.can_match_children(path)


class _FixedResolver:
    def resolve_artifact(self, group_id, artifact_id):
        return NodePath.parse("D/c")


class _ModuleNameResolver:
    """Maps ``com.acme:<name>`` to the module ``D/<name>``, as ARTIFACT_PATHS do."""

    def resolve_artifact(self, group_id, artifact_id):
        if group_id != ARTIFACT_GROUP:
            return None
        return NodePath.parse(f"D/{artifact_id}")


class TestProperties:
    """Properties checked over every acyclic path of up to four modules."""

    @pytest.mark.parametrize("literal", PATTERNS)
    def test_matched_paths_are_never_pruned(self, literal):
        matcher = compile_pattern(literal, _FixedResolver())

        for path in ALL_PATHS:
            if not matcher.matches(path):
                continue
            for prefix in prefixes(path):
                assert matcher.can_match_children(prefix), f"{literal} pruned {prefix} above {path}"

    @pytest.mark.parametrize("literal", PATTERNS)
    def test_matches_agrees_with_backtracking(self, literal):
        matcher = compile_pattern(literal, _FixedResolver())

        for path in ALL_PATHS:
            assert matcher.matches(path) == brute_force_matches(matcher.elements, list(path)), str(path)

    @pytest.mark.parametrize("literal", PATTERNS)
    def test_rendering_round_trips(self, literal):
        matcher = compile_pattern(literal, _FixedResolver())
        recompiled = compile_pattern(str(matcher), _FixedResolver())

        assert recompiled == matcher
        for path in ALL_PATHS:
            assert recompiled.matches(path) == matcher.matches(path)

    def test_pruning_happens(self):
        matcher = compile_pattern("/D/a->**->/D/c")

        pruned = [path for path in ALL_PATHS if not matcher.can_match_children(path)]

        assert path_of("D/b:S/1") in pruned
        assert path_of("D/a:D/master", "D/c:S/1") in pruned

    @pytest.mark.parametrize("literal", ARTIFACT_PATTERNS)
    def test_artifact_matches_are_never_pruned(self, literal):
        matcher = compile_pattern(literal, _ModuleNameResolver())

        for path in ARTIFACT_PATHS:
            if not matcher.matches(path):
                continue
            for prefix in prefixes(path):
                assert matcher.can_match_children(prefix), f"{literal} pruned {prefix} above {path}"

    @pytest.mark.parametrize("literal", ARTIFACT_PATTERNS)
    def test_artifact_matches_agree_with_backtracking(self, literal):
        matcher = compile_pattern(literal, _ModuleNameResolver())

        for path in ARTIFACT_PATHS:
            assert matcher.matches(path) == brute_force_matches(matcher.elements, list(path)), str(path)

    def test_artifact_patterns_match_some_paths(self):
        matcher = compile_pattern("**->com.acme:b->**->com.acme:d->**", _ModuleNameResolver())

        matched = [path for path in ARTIFACT_PATHS if matcher.matches(path)]

        assert ReferencePath([artifact_ref("D/b:S/1"), artifact_ref("D/d:D/dev")]) in matched
        assert not matcher.can_match_children(ReferencePath([artifact_ref("D/d:D/dev"), artifact_ref("D/b:S/1")]))
