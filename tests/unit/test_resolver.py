"""
Unit tests for ftrace_timeline.source.resolver module.
"""
import itertools
import os
import pytest
from unittest.mock import patch

from ftrace_timeline.core.types import BodyStatus, ResolutionStatus, ResolverConfig
from ftrace_timeline.source import resolver as resolver_module
from ftrace_timeline.source.resolver import (
    SourceLocationResolver,
    lookup_symbol,
)


@pytest.fixture
def resolver(kernel_tree):
    return SourceLocationResolver(kernel_tree, ResolverConfig(timeout_seconds=None))


class TestLookupSymbol:
    """Tests for clone suffix removal."""

    @pytest.mark.parametrize("traced,expected", [
        ("ip_rcv_core.isra.0", "ip_rcv_core"),
        ("tcp_v4_rcv.constprop.0", "tcp_v4_rcv"),
        ("napi_poll.cold", "napi_poll"),
        ("skb_release_data.part.0.isra.0", "skb_release_data"),
        ("udp_rcv", "udp_rcv"),
    ])
    def test_suffixes(self, traced, expected):
        assert lookup_symbol(traced) == expected


class TestIsDefinition:
    """Tests for the definition heuristics on single snippets."""

    def check(self, resolver, source, symbol="foo"):
        lines = source.splitlines(keepends=True)
        index = next(i for i, line in enumerate(lines) if symbol in line)
        return resolver.is_definition(lines, index, symbol)

    def test_one_line_definition(self, resolver):
        assert self.check(resolver, "int foo(void) { return 0; }\n")

    def test_brace_on_next_line(self, resolver):
        assert self.check(resolver, "static int foo(int a)\n{\n\treturn a;\n}\n")

    def test_pointer_return_type(self, resolver):
        assert self.check(resolver, "struct sk_buff *foo(struct sk_buff *skb)\n{\n}\n")

    def test_prototype_rejected(self, resolver):
        assert not self.check(resolver, "int foo(int a);\n")

    def test_multiline_prototype_rejected(self, resolver):
        assert not self.check(resolver, "int foo(int a,\n\t int b);\nint bar(void)\n{\n}\n")

    def test_assignment_call_rejected(self, resolver):
        assert not self.check(resolver, "\tret = foo(skb);\n")

    def test_return_call_rejected(self, resolver):
        assert not self.check(resolver, "\treturn foo(skb) {\n")

    def test_condition_rejected(self, resolver):
        assert not self.check(resolver, "\tif (foo(skb)) {\n")

    def test_indented_bare_call_rejected(self, resolver):
        assert not self.check(resolver, "\tfoo(list, head) {\n")

    def test_comment_rejected(self, resolver):
        assert not self.check(resolver, " * foo() {\n")

    def test_trailing_comment_rejected(self, resolver):
        assert not self.check(resolver, "int x; /* foo(a) { */\n")

    def test_string_literal_rejected(self, resolver):
        assert not self.check(resolver, 'char *s = "foo(a) {";\n')

    def test_macro_rejected(self, resolver):
        assert not self.check(resolver, "#define foo(x) { (x) }\n")

    def test_export_symbol_rejected(self, resolver):
        assert not self.check(resolver, "EXPORT_SYMBOL(foo);\n")

    def test_longer_identifier_not_matched(self, resolver):
        assert not self.check(resolver, "int foo_bar(void)\n{\n}\n", symbol="foo")

    def test_unbalanced_window_rejected(self, resolver):
        """No closing parenthesis within the window means no definition."""
        source = "int foo(int a,\n int b,\n int c,\n int d,\n int e)\n{\n}\n"

        assert not self.check(resolver, source)

    def test_line_inside_open_block_comment_rejected(self, resolver):
        lines = ["/*\n", "int foo(void)\n", "{\n", "}\n", "*/\n"]

        assert resolver.is_definition(lines, 1, "foo") is True
        assert resolver.is_definition(lines, 1, "foo", in_comment=True) is False

    def test_index_out_of_range(self, resolver):
        assert resolver.is_definition(["int foo(void) {}\n"], 5, "foo") is False


class TestSourceLocationResolver:
    """Tests for resolution against the fixture kernel tree."""

    def test_multiline_definition_over_longer_name(self, resolver, line_of):
        """ip_rcv resolves to its own definition, not ip_rcv_core or the prototype."""
        location = resolver.resolve("ip_rcv")

        assert location.status is ResolutionStatus.RESOLVED
        assert location.file == "net/ipv4/ip_input.c"
        assert location.line == line_of("net/ipv4/ip_input.c", "int ip_rcv(")
        assert location.body_text.startswith("int ip_rcv(")
        assert location.body_text.rstrip().endswith("}")
        assert "ip_rcv_finish" in location.body_text
        assert location.body_status is BodyStatus.COMPLETE
        assert location.all_candidate_locations == (("net/ipv4/ip_input.c", location.line),)

    def test_comment_mention_is_not_a_definition(self, resolver, line_of):
        """A comment 'udp_rcv() {' precedes the real definition in the same file."""
        location = resolver.resolve("udp_rcv")

        assert location.file == "net/ipv4/udp.c"
        assert location.line == line_of("net/ipv4/udp.c", "int udp_rcv(")
        assert location.body_line_count == 4

    def test_only_comment_mentions_are_unresolved(self, resolver):
        location = resolver.resolve("udp_ghost")

        assert location.status is ResolutionStatus.UNRESOLVED
        assert location.file == "unknown/udp_ghost.c"
        assert location.line == 1000
        assert location.body_status is BodyStatus.NONE
        assert location.body_line_count == 2
        assert "udp_ghost not found" in location.body_text

    def test_calls_are_not_definitions(self, resolver):
        """Calls in net/core/dev.c are found before udp.c but rejected."""
        candidates = resolver.resolve("udp_rcv").all_candidate_locations

        assert all(path != "net/core/dev.c" for path, _ in candidates)

    def test_drivers_outside_search_dirs(self, resolver):
        candidates = resolver.resolve("udp_rcv").all_candidate_locations

        assert [path for path, _ in candidates] == ["net/ipv4/udp.c"]

    def test_definition_inside_block_comment_rejected(self, kernel_tree):
        """A column-0 definition inside a multi-line comment is not a candidate."""
        path = os.path.join(kernel_tree, "net", "ipv4", "ghost.c")
        with open(path, "w") as f:
            f.write("/*\nudp_ghost(struct sk_buff *skb) {\n\treturn 0;\n}\n*/\n")
        resolver = SourceLocationResolver(kernel_tree, ResolverConfig(timeout_seconds=None))

        location = resolver.resolve("udp_ghost")

        assert location.status is ResolutionStatus.UNRESOLVED
        assert location.all_candidate_locations == ()

    def test_definition_after_closed_block_comment(self, kernel_tree):
        path = os.path.join(kernel_tree, "net", "ipv4", "revived.c")
        with open(path, "w") as f:
            f.write("/*\n * old version\n */\nint udp_revived(void)\n{\n\treturn 0;\n}\n")
        resolver = SourceLocationResolver(kernel_tree, ResolverConfig(timeout_seconds=None))

        location = resolver.resolve("udp_revived")

        assert (location.file, location.line) == ("net/ipv4/revived.c", 4)

    def test_custom_search_dirs(self, kernel_tree):
        resolver = SourceLocationResolver(
            kernel_tree, ResolverConfig(search_dirs=("drivers",), timeout_seconds=None)
        )

        location = resolver.resolve("udp_rcv")

        assert location.file == "drivers/net/dummy.c"
        assert location.line == 1

    def test_loop_macro_is_unresolved(self, resolver):
        assert resolver.resolve("list_for_each_entry").status is ResolutionStatus.UNRESOLVED

    def test_define_is_unresolved(self, resolver):
        assert resolver.resolve("ip_rcv_macro").status is ResolutionStatus.UNRESOLVED

    def test_split_style_definition(self, resolver, line_of):
        """Return type on its own line; the name line is the definition."""
        location = resolver.resolve("udp_queue_rcv_skb")

        assert location.line == line_of("net/ipv4/udp.c", "udp_queue_rcv_skb(")
        assert location.body_text.startswith("udp_queue_rcv_skb(")
        assert "return 0;" in location.body_text
        assert location.body_line_count == 10

    def test_header_inline_definition(self, resolver, line_of):
        location = resolver.resolve("ip_is_fragment")

        assert location.file == "include/net/ip.h"
        assert location.line == line_of("include/net/ip.h", "ip_is_fragment")

    def test_candidate_order_follows_search_dirs(self, resolver, line_of):
        """Every accepted site is listed; the first one found wins."""
        location = resolver.resolve("__kfree_skb")

        assert location.file == "net/core/skbuff.c"
        assert location.all_candidate_locations == (
            ("net/core/skbuff.c", line_of("net/core/skbuff.c", "void __kfree_skb(")),
            ("include/linux/skbuff.h", line_of("include/linux/skbuff.h", "static inline")),
        )

    def test_reordered_search_dirs(self, kernel_tree, line_of):
        resolver = SourceLocationResolver(
            kernel_tree,
            ResolverConfig(search_dirs=("include/linux", "net"), timeout_seconds=None),
        )

        location = resolver.resolve("__kfree_skb")

        assert location.file == "include/linux/skbuff.h"
        assert location.line == line_of("include/linux/skbuff.h", "static inline")

    def test_clone_suffix_resolves_base_symbol(self, resolver, line_of):
        location = resolver.resolve("ip_rcv_core.isra.0")

        assert location.function == "ip_rcv_core.isra.0"
        assert location.file == "net/ipv4/ip_input.c"
        assert location.line == line_of("net/ipv4/ip_input.c", "ip_rcv_core(struct")

    def test_missing_search_dir_is_ignored(self, tmp_path):
        resolver = SourceLocationResolver(str(tmp_path), ResolverConfig(timeout_seconds=None))

        assert resolver.resolve("udp_rcv").status is ResolutionStatus.UNRESOLVED

    def test_iter_source_files_filters_extensions(self, kernel_tree):
        with open(os.path.join(kernel_tree, "net", "core", "notes.txt"), "w") as f:
            f.write("int udp_rcv(void) {}\n")
        resolver = SourceLocationResolver(kernel_tree)

        paths = [rel for _, rel in resolver.iter_source_files()]

        assert "net/core/notes.txt" not in paths
        assert paths[:2] == ["net/core/dev.c", "net/core/skbuff.c"]

    def test_files_cached_between_searches(self, resolver):
        resolver.resolve("udp_rcv")
        misses = resolver._read_source.cache_info().misses

        resolver.resolve("ip_rcv")

        assert resolver._read_source.cache_info().misses == misses
        assert resolver._read_source.cache_info().hits > 0

    def test_timeout_gives_timed_out_placeholder(self, kernel_tree):
        resolver = SourceLocationResolver(kernel_tree, ResolverConfig(timeout_seconds=10))

        with patch.object(resolver_module.time, "monotonic", side_effect=itertools.count(0, 100)):
            location = resolver.resolve("udp_rcv")

        assert location.status is ResolutionStatus.TIMED_OUT
        assert location.file == "unknown/udp_rcv.c"
        assert "timed out" in location.body_text

    def test_generous_timeout_resolves(self, kernel_tree):
        resolver = SourceLocationResolver(kernel_tree, ResolverConfig(timeout_seconds=60))

        assert resolver.resolve("udp_rcv").status is ResolutionStatus.RESOLVED
