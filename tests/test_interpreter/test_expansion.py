"""Tests for word expansion."""

import pytest

from pjsh import Shell, ShellOptions
from pjsh.interpreter import Interpreter
from pjsh.interpreter.expansion import expand_command_words, expand_word, substitute_aliases
from pjsh.parser import parse_words


def make_ctx():
    return Interpreter().ctx


class TestWordExpansion:
    """Test expansion of single words."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("word", ["abc", "foo-bar", "x.y", "123", "a=b"])
    async def test_literal_expands_to_itself(self, word):
        ctx = make_ctx()
        assert await expand_word(ctx, parse_words(word)[0]) == [word]

    @pytest.mark.asyncio
    async def test_double_quoted_is_not_split(self):
        ctx = make_ctx()
        assert await expand_word(ctx, parse_words('"a b"')[0]) == ["a b"]

    @pytest.mark.asyncio
    async def test_quoted_list_item_is_one_item(self):
        shell = Shell()
        result = await shell.exec('xs := ["a b" c]\necho ${xs | len}')
        assert result.stdout == "2\n"

    @pytest.mark.asyncio
    async def test_single_quotes_do_not_interpolate(self):
        shell = Shell()
        result = await shell.exec("echo '$HOME'")
        assert result.stdout == "$HOME\n"

    @pytest.mark.asyncio
    async def test_joined_parts(self):
        shell = Shell()
        result = await shell.exec('name := mid\necho pre$name"post"')
        assert result.stdout == "premidpost\n"

    @pytest.mark.asyncio
    async def test_unset_variable_is_empty(self):
        shell = Shell()
        result = await shell.exec("echo `[$nope]`")
        assert result.stdout == "[]\n"


class TestInterpolation:
    """Test backtick strings."""

    @pytest.mark.asyncio
    async def test_variable(self):
        shell = Shell()
        result = await shell.exec("name := world\necho `hello $name`")
        assert result.stdout == "hello world\n"

    @pytest.mark.asyncio
    async def test_braced_variable(self):
        shell = Shell()
        result = await shell.exec("thing := cat\necho `${thing}s`")
        assert result.stdout == "cats\n"

    @pytest.mark.asyncio
    async def test_subshell(self):
        shell = Shell()
        result = await shell.exec("echo `[$(echo hi)]`")
        assert result.stdout == "[hi]\n"

    @pytest.mark.asyncio
    async def test_filter_pipeline(self):
        shell = Shell()
        result = await shell.exec("xs := [b a]\necho `${xs | sort | join +}`")
        assert result.stdout == "a+b\n"

    @pytest.mark.asyncio
    async def test_multiline_backticks(self):
        shell = Shell()
        result = await shell.exec("name := x\necho ```\n    a $name\n      b\n    ```")
        assert result.stdout == "a x\n  b\n"


class TestSpecialVariables:
    """Test $? and positional variables."""

    @pytest.mark.asyncio
    async def test_last_exit_code(self):
        shell = Shell()
        result = await shell.exec("false\necho $?\ntrue\necho $?")
        assert result.stdout == "1\n0\n"

    @pytest.mark.asyncio
    async def test_positional_arguments(self):
        shell = Shell()
        result = await shell.exec("echo $2 $1", args=["a", "b"])
        assert result.stdout == "b a\n"


class TestValues:
    """Test list values, properties and spreads."""

    @pytest.mark.asyncio
    async def test_sort_join(self):
        shell = Shell()
        result = await shell.exec('items := [3 1 2]\necho ${items | sort | join ","}')
        assert result.stdout == "1,2,3\n"
        assert result.exit_code == 0

    @pytest.mark.asyncio
    async def test_list_variable_is_one_word(self):
        shell = Shell()
        result = await shell.exec(
            "fn count(args...) { echo ${args | len} }\nxs := [a b]\ncount $xs\ncount ...$xs"
        )
        assert result.stdout == "1\n2\n"

    @pytest.mark.asyncio
    async def test_spread_with_suffix(self):
        shell = Shell()
        result = await shell.exec("xs := [a b]\necho ...$xs.txt")
        assert result.stdout == "a.txt b.txt\n"

    @pytest.mark.asyncio
    async def test_property(self):
        shell = Shell()
        result = await shell.exec("xs := [a b c]\necho ${xs.1}")
        assert result.stdout == "b\n"

    @pytest.mark.asyncio
    async def test_property_out_of_range(self):
        shell = Shell()
        result = await shell.exec("xs := [a b c]\necho ${xs.5}\necho after")
        assert "out of range" in result.stderr
        assert result.stdout == ""
        assert result.exit_code == 1

    @pytest.mark.asyncio
    async def test_assignment_keeps_list_kind(self):
        shell = Shell()
        result = await shell.exec(
            "xs := [a b]\nys := $xs\necho ${ys | len}\nzs := ${xs | reverse}\necho ${zs | join -}"
        )
        assert result.stdout == "2\nb-a\n"

    @pytest.mark.asyncio
    async def test_split_then_join(self):
        shell = Shell()
        result = await shell.exec("csv := a,b,c\necho ${csv | split , | reverse | join ' '}")
        assert result.stdout == "c b a\n"


class TestTilde:
    """Test tilde expansion."""

    @pytest.mark.asyncio
    async def test_home(self, tmp_path):
        shell = Shell(env={"HOME": str(tmp_path)})
        result = await shell.exec("echo ~ ~/notes a~b")
        assert result.stdout == f"{tmp_path} {tmp_path}/notes a~b\n"

    @pytest.mark.asyncio
    async def test_quoted_tilde(self, tmp_path):
        shell = Shell(env={"HOME": str(tmp_path)})
        result = await shell.exec("echo '~'")
        assert result.stdout == "~\n"


class TestMultilineStrings:
    """Test triple-quoted strings end to end."""

    @pytest.mark.asyncio
    async def test_indentation_is_stripped(self):
        script = "\n".join([
            'text := """',
            "    line one",
            "      line two",
            '    """',
            "echo $text",
        ])
        shell = Shell()
        result = await shell.exec(script)
        assert result.stdout == "line one\n  line two\n"


class TestExpansionErrors:
    """Test how expansion errors abort statements."""

    @pytest.mark.asyncio
    async def test_error_stops_script(self):
        shell = Shell()
        result = await shell.exec("x := abc\necho ${x | sort}\necho after")
        assert result.stderr == "pjsh: filter 'sort' cannot be applied to a word\n"
        assert result.stdout == ""
        assert result.exit_code == 1

    @pytest.mark.asyncio
    async def test_interactive_shell_continues(self):
        shell = Shell(options=ShellOptions(interactive=True))
        result = await shell.exec("x := abc\necho ${x | sort}\necho after")
        assert "cannot be applied to a word" in result.stderr
        assert result.stdout == "after\n"
        assert result.exit_code == 0


class TestAliases:
    """Test alias substitution."""

    def test_self_reference_expands_once(self):
        ctx = make_ctx()
        ctx.state.aliases["ls"] = "ls -l"
        assert substitute_aliases(ctx, ["ls", "/tmp"]) == ["ls", "-l", "/tmp"]

    def test_resolved_command_is_unchanged(self):
        ctx = make_ctx()
        ctx.state.aliases["ls"] = "ls -l"
        guard = set()
        first = substitute_aliases(ctx, ["ls"], guard)
        assert substitute_aliases(ctx, first, guard) is first

    def test_chained_aliases(self):
        ctx = make_ctx()
        ctx.state.aliases["ll"] = "ls -l"
        ctx.state.aliases["ls"] = "ls --color"
        assert substitute_aliases(ctx, ["ll"]) == ["ls", "--color", "-l"]

    def test_mutual_cycle_terminates(self):
        ctx = make_ctx()
        ctx.state.aliases["a"] = "b x"
        ctx.state.aliases["b"] = "a y"
        assert substitute_aliases(ctx, ["a"]) == ["a", "y", "x"]

    def test_trailing_space_stops_substitution(self):
        ctx = make_ctx()
        ctx.state.aliases["run"] = "ll "
        ctx.state.aliases["ll"] = "ls -l"
        assert substitute_aliases(ctx, ["run", "x"]) == ["ll", "x"]

    @pytest.mark.asyncio
    async def test_only_first_word(self):
        ctx = make_ctx()
        ctx.state.aliases["ls"] = "ls -l"
        words = await expand_command_words(ctx, parse_words("echo ls"))
        assert words == ["echo", "ls"]

    @pytest.mark.asyncio
    async def test_alias_end_to_end(self):
        shell = Shell()
        result = await shell.exec('alias greet = "echo hello"\ngreet world')
        assert result.stdout == "hello world\n"

    @pytest.mark.asyncio
    async def test_command_name_from_variable(self):
        shell = Shell()
        result = await shell.exec('alias ll = "echo aliased"\nc := ll\n$c')
        assert result.stdout == "aliased\n"
        assert result.exit_code == 0

    @pytest.mark.asyncio
    async def test_quoted_name_is_not_aliased(self):
        shell = Shell()
        result = await shell.exec("alias greet = \"echo hi\"\n'greet'")
        assert result.exit_code == 127

    @pytest.mark.asyncio
    async def test_alias_value_is_not_interpolated(self):
        shell = Shell()
        result = await shell.exec("x := expanded\nalias show = 'echo $x'\nshow")
        assert result.stdout == "$x\n"
