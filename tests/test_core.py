"""
Core functionality tests for cartfile-tools.
Tests scanning, comment handling, parsing and rendering of all manifests.
"""

import pytest

from cartfile_tools.comments import is_comment_line, strip_trailing_comment
from cartfile_tools.cursor import Cursor, ScannableError
from cartfile_tools.dependency import Dependency, DependencyKind, parse_dependency
from cartfile_tools.errors import (
    DuplicateDependenciesError,
    DuplicateDependency,
    InternalError,
    ParseError,
    SemanticError,
)
from cartfile_tools.manifests import (
    Cartfile,
    ResolvedCartfile,
    SchemeCartfile,
    duplicate_dependencies_in,
)
from cartfile_tools.version import (
    PinnedVersion,
    SemanticVersion,
    SpecifierKind,
    VersionSpecifier,
    parse_pinned_version,
    parse_version_specifier,
)

from conftest import SAMPLE_CARTFILE


def github(location):
    return Dependency(DependencyKind.GITHUB, location)


class TestCommentStripping:
    """Test removal of trailing comments outside quotes."""

    def test_indicator_inside_quotes_is_kept(self):
        """Test that a comment indicator inside quotes is kept."""
        line = 'github "org/repo" "1.0#beta"'
        assert strip_trailing_comment(line) == line

    def test_trailing_comment_is_removed(self):
        """Test removal of a trailing comment."""
        assert (
            strip_trailing_comment('github "org/repo" "1.0" # note')
            == 'github "org/repo" "1.0" '
        )

    def test_line_without_comment_is_unchanged(self):
        """Test that lines without comments pass through unchanged."""
        assert strip_trailing_comment('github "org/repo" ~> 1.0') == 'github "org/repo" ~> 1.0'

    def test_stripping_is_idempotent(self):
        """Test that stripping twice gives the same result."""
        lines = [
            'github "org/repo" "1.0" # note',
            'github "org/repo" "1.0#beta" # note # more',
            '# whole line',
            'no quotes # here',
        ]
        for line in lines:
            once = strip_trailing_comment(line)
            assert strip_trailing_comment(once) == once

    def test_empty_quotes_keep_parity(self):
        """Test that an empty quoted string does not break quote parity."""
        assert strip_trailing_comment('a "" # c') == 'a "" '

    def test_unterminated_quote_is_accepted(self):
        """Test lines with an unterminated quote."""
        line = 'github "org/repo # not a comment'
        assert strip_trailing_comment(line) == line

    def test_multi_character_indicator(self):
        """Test a multi-character comment indicator."""
        line = 'github "http://x" // comment'
        assert strip_trailing_comment(line, comment_indicator="//") == 'github "http://x" '

    def test_comment_line_detection(self):
        """Test detection of whole-line comments."""
        assert is_comment_line("# comment")
        assert is_comment_line("   # indented comment")
        assert not is_comment_line('github "a/b" # trailing')


class TestCursor:
    """Test the immutable scanning cursor."""

    def test_consume_skips_whitespace(self):
        """Test that consume skips leading whitespace."""
        cursor = Cursor("  hello")
        advanced = cursor.consume("hello")
        assert advanced is not None
        assert advanced.position == 7
        assert advanced.at_end

    def test_consume_does_not_modify_receiver(self):
        """Test that cursors are never modified in place."""
        cursor = Cursor("abc")
        cursor.consume("ab")
        assert cursor.position == 0
        assert cursor.consume("x") is None

    def test_peek_looks_ahead_without_consuming(self):
        """Test looking ahead past whitespace."""
        cursor = Cursor("   ~> 1.0")
        assert cursor.peek("~>")
        assert not cursor.peek("==")
        assert cursor.position == 0
        assert not Cursor("").peek("x")

    def test_remaining_and_current_line(self):
        """Test remaining text and current line reporting."""
        cursor = Cursor("one\ntwo\nthree", 5)
        assert cursor.remaining == "wo\nthree"
        assert cursor.current_line == "two"

    def test_at_end_ignores_trailing_whitespace(self):
        """Test end-of-input detection with trailing whitespace."""
        assert Cursor("x  \n\t", 1).at_end
        assert not Cursor("x y", 1).at_end

    def test_advance_past_end_is_internal_error(self):
        """Test advancing past the end of input."""
        with pytest.raises(InternalError):
            Cursor("ab").advance(3)

    def test_scannable_error_names_line(self):
        """Test that scan errors name the offending line."""
        error = ScannableError("expected pinned version", 'github "a/b" 1.0')
        assert str(error) == 'expected pinned version in line: github "a/b" 1.0'


class TestDependencyParsing:
    """Test dependency identifier scanning."""

    @pytest.mark.parametrize(
        "text,kind,location",
        [
            ('github "ReactiveX/RxSwift"', DependencyKind.GITHUB, "ReactiveX/RxSwift"),
            ('git "https://example.com/Lib.git"', DependencyKind.GIT, "https://example.com/Lib.git"),
            ('binary "https://example.com/F.json"', DependencyKind.BINARY, "https://example.com/F.json"),
            ('github "https://ghe.example.com/owner/repo"', DependencyKind.GITHUB, "https://ghe.example.com/owner/repo"),
            ('binary "file:///tmp/F.json"', DependencyKind.BINARY, "file:///tmp/F.json"),
        ],
    )
    def test_parse_dependency_kinds(self, text, kind, location):
        """Test parsing github, git and binary dependencies."""
        dependency, cursor = parse_dependency(Cursor(text))
        assert dependency == Dependency(kind, location)
        assert cursor.at_end

    def test_canonical_form_and_name(self):
        """Test canonical dependency text and names."""
        assert str(github("ReactiveX/RxSwift")) == 'github "ReactiveX/RxSwift"'
        assert github("ReactiveX/RxSwift").name == "RxSwift"
        assert Dependency(DependencyKind.GIT, "https://x.com/Lib.git").name == "Lib"
        assert Dependency(DependencyKind.BINARY, "https://x.com/F.json").name == "F"

    def test_ordering_follows_canonical_form(self):
        """Test dependency ordering by canonical form."""
        dependencies = [
            github("b/b"),
            Dependency(DependencyKind.GIT, "z"),
            github("a/a"),
            Dependency(DependencyKind.BINARY, "https://x/F.json"),
        ]
        assert [str(d) for d in sorted(dependencies)] == [
            'binary "https://x/F.json"',
            'git "z"',
            'github "a/a"',
            'github "b/b"',
        ]

    @pytest.mark.parametrize(
        "text,message",
        [
            ('svn "a/b"', "unexpected dependency type"),
            ("github a/b", "expected string after dependency type"),
            ('github ""', "empty string after dependency type"),
            ('github "a/b', "unterminated string after dependency type"),
            ('github "not-a-repo"', "invalid GitHub repository identifier"),
            ('binary "http://example.com/F.json"', "non-https URL"),
            ('binary "ftp://example.com/F.json"', "invalid URL"),
        ],
    )
    def test_parse_dependency_errors(self, text, message):
        """Test dependency scan errors."""
        with pytest.raises(ScannableError, match=message) as excinfo:
            parse_dependency(Cursor(text))
        assert excinfo.value.current_line == text


class TestVersionParsing:
    """Test version constraint and pinned version scanning."""

    @pytest.mark.parametrize(
        "text,kind,rendered",
        [
            ("~> 1.2", SpecifierKind.COMPATIBLE_WITH, "~> 1.2.0"),
            (">= 5.0.0-beta.1", SpecifierKind.AT_LEAST, ">= 5.0.0-beta.1"),
            ("== 2.3.0+build.7", SpecifierKind.EXACTLY, "== 2.3.0+build.7"),
            ('"develop"', SpecifierKind.GIT_REFERENCE, '"develop"'),
            ("", SpecifierKind.ANY, ""),
        ],
    )
    def test_parse_version_specifier(self, text, kind, rendered):
        """Test parsing each kind of version specifier."""
        specifier, cursor = parse_version_specifier(Cursor(text))
        assert specifier.kind is kind
        assert str(specifier) == rendered
        assert cursor.at_end

    def test_any_consumes_nothing(self):
        """Test that an absent specifier consumes no input."""
        cursor = Cursor(" trailing")
        specifier, after = parse_version_specifier(cursor)
        assert specifier == VersionSpecifier.any()
        assert after == cursor

    @pytest.mark.parametrize(
        "text,message",
        [
            (">=", "expected version number"),
            ("~> one", "invalid version number"),
            ("== 1.0-", "empty pre-release identifier"),
            ('"', "unterminated Git reference"),
            ('""', "empty Git reference"),
        ],
    )
    def test_parse_version_specifier_errors(self, text, message):
        """Test version specifier scan errors."""
        with pytest.raises(ScannableError, match=message):
            parse_version_specifier(Cursor(text))

    def test_semantic_version_precedence(self):
        """Test semantic version precedence."""
        assert SemanticVersion.from_string("1.0.0-beta") < SemanticVersion.from_string("1.0.0")
        assert SemanticVersion.from_string("1.0.0-alpha.2") < SemanticVersion.from_string("1.0.0-alpha.10")
        assert SemanticVersion.from_string("1.2") == SemanticVersion(1, 2, 0)

    def test_compatible_with_is_satisfied_by(self):
        """Test the compatible-with operator."""
        specifier, _ = parse_version_specifier(Cursor("~> 1.2"))
        assert specifier.is_satisfied_by(SemanticVersion(1, 9, 0))
        assert not specifier.is_satisfied_by(SemanticVersion(2, 0, 0))
        assert not specifier.is_satisfied_by(SemanticVersion(1, 1, 0))

        zero_major, _ = parse_version_specifier(Cursor("~> 0.3"))
        assert zero_major.is_satisfied_by(SemanticVersion(0, 3, 5))
        assert not zero_major.is_satisfied_by(SemanticVersion(0, 4, 0))

    def test_other_specifiers_are_satisfied_by(self):
        """Test the remaining specifier kinds."""
        assert VersionSpecifier.any().is_satisfied_by(SemanticVersion(0, 0, 1))
        assert not VersionSpecifier.git_reference("main").is_satisfied_by(SemanticVersion(1))
        exactly, _ = parse_version_specifier(Cursor("== 1.0"))
        assert exactly.is_satisfied_by(SemanticVersion(1, 0, 0))
        assert not exactly.is_satisfied_by(SemanticVersion(1, 0, 1))

    def test_parse_pinned_version(self):
        """Test parsing pinned versions."""
        pinned, cursor = parse_pinned_version(Cursor(' "v1.2.0"'))
        assert pinned == PinnedVersion("v1.2.0")
        assert str(pinned) == "v1.2.0"
        assert cursor.at_end

    @pytest.mark.parametrize(
        "text,message",
        [
            ("1.0.0", "expected pinned version"),
            ('""', "empty pinned version"),
            ('"1.0.0', "unterminated pinned version"),
        ],
    )
    def test_parse_pinned_version_errors(self, text, message):
        """Test pinned version scan errors."""
        with pytest.raises(ScannableError, match=message):
            parse_pinned_version(Cursor(text))


class TestCartfile:
    """Test Cartfile parsing, validation and rendering."""

    def test_parse_sample(self):
        """Test parsing a typical Cartfile."""
        cartfile = Cartfile.from_string(SAMPLE_CARTFILE)

        assert len(cartfile.dependencies) == 5
        assert cartfile.dependencies[github("ReactiveX/RxSwift")] == VersionSpecifier(
            SpecifierKind.COMPATIBLE_WITH, version=SemanticVersion(6, 5, 0)
        )
        assert cartfile.dependencies[github("Quick/Nimble")] == VersionSpecifier.any()
        assert cartfile.dependencies[
            Dependency(DependencyKind.GIT, "https://example.com/Lib.git")
        ] == VersionSpecifier.git_reference("develop")

    def test_comment_indicator_inside_git_reference(self):
        """Test a comment indicator inside a git reference."""
        cartfile = Cartfile.from_string('github "org/repo" "1.0#beta" # note\n')
        assert cartfile.dependencies[github("org/repo")] == VersionSpecifier.git_reference(
            "1.0#beta"
        )

    def test_empty_input(self):
        """Test parsing empty input."""
        assert Cartfile.from_string("").dependencies == {}
        assert Cartfile.from_string("\n  \n# only comments\n").dependencies == {}

    def test_universal_newlines(self):
        """Test CRLF and CR line endings."""
        cartfile = Cartfile.from_string('github "a/b"\r\ngithub "c/d" ~> 1.0\rgithub "e/f"')
        assert len(cartfile.dependencies) == 3

    def test_round_trip(self):
        """Test that rendered text parses back to the same value."""
        cartfile = Cartfile.from_string(SAMPLE_CARTFILE)
        assert Cartfile.from_string(cartfile.render()) == cartfile

    def test_render_is_sorted_and_canonical(self):
        """Test canonical, sorted rendering."""
        cartfile = Cartfile.from_string(SAMPLE_CARTFILE)
        assert cartfile.render() == (
            'binary "https://example.com/Framework.json" == 2.3.0\n'
            'git "https://example.com/Lib.git" "develop"\n'
            'github "Alamofire/Alamofire" >= 5.0.0-beta.1\n'
            'github "Quick/Nimble"\n'
            'github "ReactiveX/RxSwift" ~> 6.5.0\n'
        )
        assert str(cartfile) == cartfile.render()

    def test_render_empty(self):
        """Test rendering an empty Cartfile."""
        assert Cartfile().render() == "\n"
        assert Cartfile.from_string(Cartfile().render()) == Cartfile()

    def test_duplicates_are_batched(self):
        """Test that all duplicates are reported together."""
        text = 'github "a/b" ~> 1.0\ngithub "c/d"\ngithub "a/b" == 2.0\ngithub "a/b"\ngithub "c/d"\n'

        with pytest.raises(DuplicateDependenciesError) as excinfo:
            Cartfile.from_string(text)

        assert excinfo.value.duplicates == [
            DuplicateDependency(github("a/b")),
            DuplicateDependency(github("c/d")),
        ]
        assert all(d.locations == () for d in excinfo.value.duplicates)
        assert 'github "a/b"' in str(excinfo.value)

    def test_parse_error_after_duplicates_wins(self):
        """Test that a parse error takes precedence over duplicates."""
        text = 'github "a/b" ~> 1.0\ngithub "a/b" == 2.0\ngithub "e/f" >=\n'

        with pytest.raises(ParseError, match="expected version number"):
            Cartfile.from_string(text)

    def test_binary_with_git_reference_is_rejected(self):
        """Test rejection of binary dependencies with a git reference."""
        line = 'binary "https://example.com/F.json" "main"'
        with pytest.raises(SemanticError) as excinfo:
            Cartfile.from_string(f'github "a/b"\ngithub "a/b"\n{line}\n')

        assert str(excinfo.value) == (
            "Parse error: binary dependencies cannot have a git reference for the "
            f"version specifier in line: {line}"
        )

    def test_trailing_characters_are_rejected(self):
        """Test rejection of trailing characters."""
        with pytest.raises(SemanticError, match="unexpected trailing characters in line"):
            Cartfile.from_string('github "a/b" ~> 1.0 extra\n')

    def test_unknown_dependency_type(self):
        """Test an unknown dependency type."""
        with pytest.raises(ParseError, match='unexpected dependency type in line: svn "a/b"'):
            Cartfile.from_string('github "a/b"\nsvn "a/b"\n')

    def test_scan_error_is_chained(self):
        """Test that parse errors chain the scan error."""
        with pytest.raises(ParseError) as excinfo:
            Cartfile.from_string('github "a/b" "\n')
        assert isinstance(excinfo.value.__cause__, ScannableError)

    def test_append_last_write_wins(self):
        """Test merging Cartfiles."""
        cartfile = Cartfile.from_string('github "a/b" ~> 1.0\ngithub "c/d"\n')
        other = Cartfile.from_string('github "a/b" == 2.0\ngithub "e/f"\n')

        cartfile.append(other)

        assert len(cartfile.dependencies) == 3
        assert str(cartfile.dependencies[github("a/b")]) == "== 2.0.0"

    def test_duplicate_dependencies_in(self):
        """Test duplicate detection across two Cartfiles."""
        first = Cartfile.from_string('github "a/b"\ngithub "c/d"\ngithub "x/y"\n')
        second = Cartfile.from_string('github "x/y" ~> 1.0\ngithub "c/d"\n')

        assert duplicate_dependencies_in(first, second) == [github("c/d"), github("x/y")]


class TestResolvedCartfile:
    """Test Cartfile.resolved parsing and rendering."""

    def test_parse_and_render(self):
        """Test parsing and canonical rendering."""
        resolved = ResolvedCartfile.from_string(
            'github "c/d" "abc123"\n\n  github "a/b"   "1.0.0"\r\n'
        )
        assert resolved.dependencies == {
            github("a/b"): PinnedVersion("1.0.0"),
            github("c/d"): PinnedVersion("abc123"),
        }
        assert resolved.render() == 'github "a/b" "1.0.0"\ngithub "c/d" "abc123"\n'

    def test_later_entry_wins(self):
        """Test that a repeated dependency keeps the last pin."""
        resolved = ResolvedCartfile.from_string(
            'github "a/b" "1.0.0"\ngithub "c/d" "abc123"\ngithub "a/b" "2.0.0"\n'
        )
        assert resolved.dependencies[github("a/b")] == PinnedVersion("2.0.0")
        assert len(resolved.dependencies) == 2

    def test_missing_pinned_version(self):
        """Test a dependency without a pinned version."""
        with pytest.raises(ParseError, match='expected pinned version in line: github "c/d" 1.0'):
            ResolvedCartfile.from_string('github "a/b" "1.0.0"\ngithub "c/d" 1.0\n')

    def test_empty_input(self):
        """Test parsing empty input."""
        assert ResolvedCartfile.from_string("").dependencies == {}
        assert ResolvedCartfile().render() == "\n"


class TestSchemeCartfile:
    """Test Cartfile.schemes parsing and rendering."""

    def test_parse_and_render(self):
        """Test parsing and canonical rendering."""
        schemes = SchemeCartfile.from_string("# note\nfoo\n\nbar\nfoo\n")
        assert schemes.schemes == {"foo", "bar"}
        assert schemes.render() == "bar\nfoo\n"

    def test_names_are_trimmed_and_case_sensitive(self):
        """Test scheme name trimming and case sensitivity."""
        schemes = SchemeCartfile.from_string("  Foo  \nfoo\n")
        assert schemes.schemes == {"Foo", "foo"}

    def test_matcher(self):
        """Test the literal scheme matcher."""
        matcher = SchemeCartfile.from_schemes(["RxSwift", "Nimble-iOS"]).matcher
        assert matcher.matches("RxSwift")
        assert not matcher.matches("rxswift")

    def test_empty_input(self):
        """Test parsing empty input."""
        assert SchemeCartfile.from_string("").schemes == frozenset()
        assert SchemeCartfile().render() == "\n"
