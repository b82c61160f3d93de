"""AssetAggregator 单元测试"""

from __future__ import annotations

import itertools

import pytest

from asset_installer.core.aggregator import AssetAggregator
from asset_installer.core.exceptions import ConflictError
from asset_installer.core.packages import Package


def _pkg(name: str, npm: object = None) -> Package:
    return Package(name=name, extra={} if npm is None else {"npm": npm})


ROOT_EMPTY = _pkg("root/project")


class TestMerge:
    def test_merges_and_sorts_keys(self) -> None:
        packages = [
            _pkg("a/one", {"zepto": "1.2.0", "backbone": "1.4.0"}),
            _pkg("b/two", {"jquery": "^3.5"}),
        ]
        result = AssetAggregator().aggregate(ROOT_EMPTY, packages)
        assert result == {"backbone": "1.4.0", "jquery": "^3.5", "zepto": "1.2.0"}
        assert list(result) == ["backbone", "jquery", "zepto"]

    def test_sort_is_codepoint_order(self) -> None:
        packages = [_pkg("a/one", {"b": "1", "B": "1", "@scope/x": "1", "a-b": "1"})]
        result = AssetAggregator().aggregate(ROOT_EMPTY, packages)
        assert list(result) == ["@scope/x", "B", "a-b", "b"]

    def test_empty_everywhere(self) -> None:
        packages = [_pkg("a/one"), _pkg("b/two", {})]
        assert AssetAggregator().aggregate(ROOT_EMPTY, packages) == {}

    def test_root_only(self) -> None:
        root = _pkg("root/project", {"jquery": "3.6.0"})
        assert AssetAggregator().aggregate(root, []) == {"jquery": "3.6.0"}

    def test_root_overrides_single_package(self) -> None:
        root = _pkg("root/project", {"jquery": "3.6.0"})
        packages = [_pkg("a/one", {"jquery": "^3.0", "lodash": "4.17.21"})]
        result = AssetAggregator().aggregate(root, packages)
        assert result == {"jquery": "3.6.0", "lodash": "4.17.21"}

    def test_custom_asset_key(self) -> None:
        packages = [Package(name="a/one", extra={"assets": {"jquery": "1"}})]
        assert AssetAggregator(asset_key="assets").aggregate(ROOT_EMPTY, packages) == {
            "jquery": "1",
        }
        assert AssetAggregator().aggregate(ROOT_EMPTY, packages) == {}


class TestMalformedDeclarations:
    @pytest.mark.parametrize("npm", ["jquery", ["jquery"], 42, True, {"jquery": 3}])
    def test_malformed_package_declaration_ignored(self, npm: object) -> None:
        packages = [_pkg("a/bad", npm), _pkg("b/good", {"lodash": "4"})]
        assert AssetAggregator().aggregate(ROOT_EMPTY, packages) == {"lodash": "4"}

    @pytest.mark.parametrize("npm", ["jquery", ["jquery"], 42, {"jquery": None}])
    def test_malformed_root_declaration_treated_as_empty(self, npm: object) -> None:
        root = _pkg("root/project", npm)
        packages = [_pkg("a/one", {"jquery": "^3.0"})]
        assert AssetAggregator().aggregate(root, packages) == {"jquery": "^3.0"}

    def test_partially_malformed_declaration_still_conflicts(self) -> None:
        """坏条目只丢弃自身，同一声明里的合法条目仍参与冲突检查"""
        packages = [
            _pkg("a/one", {"jquery": "^3.0"}),
            _pkg("b/two", {"jquery": "^2.0", "broken": None}),
        ]
        with pytest.raises(ConflictError) as exc_info:
            AssetAggregator().aggregate(ROOT_EMPTY, packages)
        assert exc_info.value.names == ["jquery"]

    def test_partially_malformed_declaration_merges_valid_entries(self) -> None:
        packages = [_pkg("a/one", {"jquery": "^3.0", "x": 1})]
        assert AssetAggregator().aggregate(ROOT_EMPTY, packages) == {"jquery": "^3.0"}


class TestConflicts:
    def test_conflict_without_root_override(self) -> None:
        packages = [
            _pkg("a", {"jquery": "^3.0"}),
            _pkg("b", {"jquery": "^3.5"}),
        ]
        with pytest.raises(ConflictError, match="jquery") as exc_info:
            AssetAggregator().aggregate(ROOT_EMPTY, packages)
        assert exc_info.value.names == ["jquery"]
        assert exc_info.value.code == "ASSET_CONFLICT"

    def test_conflict_resolved_by_root(self) -> None:
        root = _pkg("root/project", {"jquery": "^3.6"})
        packages = [
            _pkg("a", {"jquery": "^3.0"}),
            _pkg("b", {"jquery": "^3.5"}),
        ]
        assert AssetAggregator().aggregate(root, packages) == {"jquery": "^3.6"}

    def test_same_specifier_still_conflicts(self) -> None:
        packages = [
            _pkg("a", {"jquery": "3.6.0"}),
            _pkg("b", {"jquery": "3.6.0"}),
        ]
        with pytest.raises(ConflictError):
            AssetAggregator().aggregate(ROOT_EMPTY, packages)

    def test_conflict_names_exactly_offending_assets(self) -> None:
        root = _pkg("root/project", {"lodash": "4.17.21"})
        packages = [
            _pkg("a", {"jquery": "^3.0", "lodash": "4.0.0", "moment": "2"}),
            _pkg("b", {"lodash": "4.1.0", "moment": "2.29", "jquery": "^3.5", "d3": "7"}),
        ]
        with pytest.raises(ConflictError) as exc_info:
            AssetAggregator().aggregate(root, packages)
        assert sorted(exc_info.value.names) == ["jquery", "moment"]
        assert "lodash" not in str(exc_info.value)

    def test_duplicate_package_entry_processed_once(self) -> None:
        """同一个包在列表中重复出现不算冲突"""
        pkg = _pkg("a/one", {"jquery": "^3.0"})
        assert AssetAggregator().aggregate(ROOT_EMPTY, [pkg, pkg]) == {"jquery": "^3.0"}

    def test_package_name_matching_asset_name_is_not_skipped(self) -> None:
        packages = [
            _pkg("a", {"b": "1.0.0"}),
            _pkg("b", {"c": "2.0.0"}),
        ]
        assert AssetAggregator().aggregate(ROOT_EMPTY, packages) == {
            "b": "1.0.0", "c": "2.0.0",
        }


class TestProperties:
    def test_root_values_win_for_all_permutations(self) -> None:
        root = _pkg("root/project", {"jquery": "3.6.0", "lodash": "4.17.21"})
        packages = [
            _pkg("a", {"jquery": "^3.0", "bootstrap": "5"}),
            _pkg("b", {"jquery": "^3.5", "lodash": "^4"}),
            _pkg("c", {"lodash": "4.0.0", "d3": "7"}),
        ]
        for perm in itertools.permutations(packages):
            result = AssetAggregator().aggregate(root, list(perm))
            assert result["jquery"] == "3.6.0"
            assert result["lodash"] == "4.17.21"
            assert result == {
                "bootstrap": "5", "d3": "7",
                "jquery": "3.6.0", "lodash": "4.17.21",
            }
            assert list(result) == sorted(result)

    def test_does_not_mutate_inputs(self) -> None:
        root_npm = {"jquery": "3.6.0"}
        pkg_npm = {"jquery": "^3.0", "d3": "7"}
        AssetAggregator().aggregate(_pkg("root", root_npm), [_pkg("a", pkg_npm)])
        assert root_npm == {"jquery": "3.6.0"}
        assert pkg_npm == {"jquery": "^3.0", "d3": "7"}
