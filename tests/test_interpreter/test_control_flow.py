"""Tests for control flow statements."""

import pytest

from pjsh import Shell


class TestAndOr:
    """Test && and || chains."""

    @pytest.mark.asyncio
    async def test_and_runs_on_success(self):
        shell = Shell()
        result = await shell.exec("true && echo X")
        assert result.stdout == "X\n"
        assert result.exit_code == 0

    @pytest.mark.asyncio
    async def test_and_skips_on_failure(self):
        shell = Shell()
        result = await shell.exec("false && echo X")
        assert result.stdout == ""
        assert result.exit_code != 0

    @pytest.mark.asyncio
    async def test_or_runs_on_failure(self):
        shell = Shell()
        result = await shell.exec("false || echo Y")
        assert result.stdout == "Y\n"
        assert result.exit_code == 0

    @pytest.mark.asyncio
    async def test_or_skips_on_success(self):
        shell = Shell()
        result = await shell.exec("true || echo Y")
        assert result.stdout == ""
        assert result.exit_code == 0

    @pytest.mark.asyncio
    async def test_left_associative(self):
        shell = Shell()
        result = await shell.exec("false && echo a || echo b")
        assert result.stdout == "b\n"


class TestIf:
    """Test if / else if / else."""

    @pytest.mark.asyncio
    async def test_if_else(self):
        shell = Shell()
        result = await shell.exec("if false { echo yes } else { echo no }")
        assert result.stdout == "no\n"

    @pytest.mark.asyncio
    async def test_else_if(self):
        shell = Shell()
        script = "x := b\nif [[ $x == a ]] { echo A } else if [[ $x == b ]] { echo B } else { echo C }"
        result = await shell.exec(script)
        assert result.stdout == "B\n"

    @pytest.mark.asyncio
    async def test_no_branch_taken(self):
        shell = Shell()
        result = await shell.exec("if false { echo yes }")
        assert result.stdout == ""
        assert result.exit_code == 0

    @pytest.mark.asyncio
    async def test_condition_is_a_pipeline(self):
        shell = Shell()
        result = await shell.exec("if true && false { echo yes } else { echo no }")
        assert result.stdout == "no\n"


class TestConditions:
    """Test [[ ... ]] segments."""

    @pytest.mark.asyncio
    async def test_string_tests(self):
        shell = Shell()
        result = await shell.exec(
            "empty := ''\n"
            "[[ -z $empty ]] && echo z\n"
            "[[ -n $empty ]] || echo not-n\n"
            "[[ abc ]] && echo bare\n"
            "[[ a != b ]] && echo ne\n"
            "[[ ! a == a ]] || echo negated"
        )
        assert result.stdout == "z\nnot-n\nbare\nne\nnegated\n"

    @pytest.mark.asyncio
    async def test_path_tests(self, tmp_path):
        (tmp_path / "file").write_text("x")
        (tmp_path / "dir").mkdir()
        shell = Shell(cwd=str(tmp_path))
        result = await shell.exec(
            "[[ -f file ]] && echo f\n"
            "[[ is-dir dir ]] && echo d\n"
            "[[ is-file dir ]] || echo not-f\n"
            "[[ -e missing ]] || echo missing\n"
            "[[ is-path dir ]] && echo e"
        )
        assert result.stdout == "f\nd\nnot-f\nmissing\ne\n"


class TestSwitch:
    """Test switch statements."""

    @pytest.mark.asyncio
    async def test_matching_case(self):
        shell = Shell()
        script = "x := b\nswitch $x {\n  a { echo A }\n  b c { echo BC }\n  default { echo other }\n}"
        result = await shell.exec(script)
        assert result.stdout == "BC\n"

    @pytest.mark.asyncio
    async def test_default(self):
        shell = Shell()
        script = "switch zzz {\n  a { echo A }\n  default { echo other }\n}"
        result = await shell.exec(script)
        assert result.stdout == "other\n"

    @pytest.mark.asyncio
    async def test_quoted_default_is_a_key(self):
        shell = Shell()
        script = "switch default {\n  'default' { echo key }\n}"
        result = await shell.exec(script)
        assert result.stdout == "key\n"

    @pytest.mark.asyncio
    async def test_first_match_wins(self):
        shell = Shell()
        result = await shell.exec("switch a { a { echo one }\n a { echo two } }")
        assert result.stdout == "one\n"


class TestLoops:
    """Test while, until and for loops."""

    @pytest.mark.asyncio
    async def test_while(self):
        shell = Shell()
        result = await shell.exec("x := a\nwhile [[ $x != aaa ]] { x := `${x}a`; echo $x }")
        assert result.stdout == "aa\naaa\n"

    @pytest.mark.asyncio
    async def test_until(self):
        shell = Shell()
        result = await shell.exec("x := ''\nuntil [[ $x == ... ]] { x := `$x.` }\necho $x")
        assert result.stdout == "...\n"

    @pytest.mark.asyncio
    async def test_for_inclusive_range(self):
        shell = Shell()
        result = await shell.exec("for i in 1..=3 { echo $i }")
        assert result.stdout == "1\n2\n3\n"

    @pytest.mark.asyncio
    async def test_for_exclusive_and_descending(self):
        shell = Shell()
        result = await shell.exec("for i in 0..2 { echo $i }\nfor i in 3..=1 { echo $i }")
        assert result.stdout == "0\n1\n3\n2\n1\n"

    @pytest.mark.asyncio
    async def test_for_list(self):
        shell = Shell()
        result = await shell.exec("for x in [a 'b c'] { echo $x }")
        assert result.stdout == "a\nb c\n"

    @pytest.mark.asyncio
    async def test_for_list_variable(self):
        shell = Shell()
        result = await shell.exec("xs := [c a b]\nfor x in ${xs | sort} { echo $x }")
        assert result.stdout == "a\nb\nc\n"

    @pytest.mark.asyncio
    async def test_for_word_variable(self):
        shell = Shell()
        result = await shell.exec("w := 'a b'\nfor x in $w { echo `<$x>` }\ne := ''\nfor x in $e { echo never }")
        assert result.stdout == "<a b>\n"

    @pytest.mark.asyncio
    async def test_for_chars_lines_words(self):
        shell = Shell()
        result = await shell.exec(
            "for c in chars of abc { echo $c }\n"
            "for w in words of ' x  y ' { echo $w }\n"
            "for l in lines of $(echo one; echo two) { echo `[$l]` }"
        )
        assert result.stdout == "a\nb\nc\nx\ny\n[one]\n[two]\n"

    @pytest.mark.asyncio
    async def test_loop_variable_is_scoped_to_iteration(self):
        shell = Shell()
        result = await shell.exec("for i in 1..=2 { inner := $i }\necho `[$i][$inner]`")
        assert result.stdout == "[][]\n"

    @pytest.mark.asyncio
    async def test_loop_updates_outer_variable(self):
        shell = Shell()
        result = await shell.exec("last := none\nfor i in [a b] { last := $i }\necho $last")
        assert result.stdout == "b\n"

    @pytest.mark.asyncio
    async def test_exit_code_of_last_command(self):
        shell = Shell()
        result = await shell.exec("for i in [a] { false }\necho $?")
        assert result.stdout == "1\n"

    @pytest.mark.asyncio
    async def test_empty_loop_exit_code(self):
        shell = Shell()
        result = await shell.exec("false\nfor i in [] { true }\necho $?")
        assert result.stdout == "0\n"
