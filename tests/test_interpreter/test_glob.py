"""Tests for glob expansion."""

import pytest

from pjsh import Shell


@pytest.fixture
def files(tmp_path):
    for name in ("b.txt", "A.txt", "a.txt", ".hidden.txt", "notes.md"):
        (tmp_path / name).write_text("")
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "x.py").write_text("")
    (sub / "y.py").write_text("")
    return tmp_path


class TestGlob:
    """Test pattern matching against the working directory."""

    @pytest.mark.asyncio
    async def test_code_point_order(self, files):
        shell = Shell(cwd=str(files))
        result = await shell.exec("echo *.txt")
        assert result.stdout == "A.txt a.txt b.txt\n"

    @pytest.mark.asyncio
    async def test_question_mark_and_class(self, files):
        shell = Shell(cwd=str(files))
        result = await shell.exec("echo ?.txt\necho notes.m[cd]")
        assert result.stdout == "A.txt a.txt b.txt\nnotes.md\n"

    @pytest.mark.asyncio
    async def test_dotfiles_need_explicit_dot(self, files):
        shell = Shell(cwd=str(files))
        result = await shell.exec("echo .*.txt")
        assert result.stdout == ".hidden.txt\n"

    @pytest.mark.asyncio
    async def test_no_match_expands_to_nothing(self, files):
        shell = Shell(cwd=str(files))
        result = await shell.exec("fn count(args...) { echo ${args | len} }\ncount *.nope")
        assert result.stdout == "0\n"

    @pytest.mark.asyncio
    async def test_subdirectory(self, files):
        shell = Shell(cwd=str(files))
        result = await shell.exec("echo sub/*.py\necho */x.py")
        assert result.stdout == "sub/x.py sub/y.py\nsub/x.py\n"

    @pytest.mark.asyncio
    async def test_absolute_pattern(self, files):
        shell = Shell(cwd="/")
        result = await shell.exec(f"echo {files}/sub/*.py")
        assert result.stdout == f"{files}/sub/x.py {files}/sub/y.py\n"

    @pytest.mark.asyncio
    async def test_escaped_and_quoted_patterns(self, files):
        shell = Shell(cwd=str(files))
        result = await shell.exec('echo \\*.txt "*.txt"')
        assert result.stdout == "*.txt *.txt\n"

    @pytest.mark.asyncio
    async def test_variable_text_is_not_a_pattern(self, files):
        shell = Shell(cwd=str(files))
        result = await shell.exec("star := '*'\necho $star.txt")
        assert result.stdout == "*.txt\n"

    @pytest.mark.asyncio
    async def test_variable_prefix_with_glob(self, files):
        shell = Shell(cwd=str(files))
        result = await shell.exec("dir := sub\necho $dir/*.py")
        assert result.stdout == "sub/x.py sub/y.py\n"

    @pytest.mark.asyncio
    async def test_assignment_is_not_globbed(self, files):
        shell = Shell(cwd=str(files))
        result = await shell.exec("x := *.txt\necho $x\nxs := [*.md]\necho ${xs | first}")
        assert result.stdout == "*.txt\n*.md\n"

    @pytest.mark.asyncio
    async def test_for_over_list_is_globbed(self, files):
        shell = Shell(cwd=str(files))
        result = await shell.exec("for f in [*.md] { echo $f }")
        assert result.stdout == "notes.md\n"

    @pytest.mark.asyncio
    async def test_for_over_pattern(self, files):
        shell = Shell(cwd=str(files))
        result = await shell.exec("for f in *.txt { echo $f }")
        assert result.stdout == "A.txt\na.txt\nb.txt\n"

    @pytest.mark.asyncio
    async def test_for_over_unmatched_pattern(self, files):
        shell = Shell(cwd=str(files))
        result = await shell.exec("for f in *.rs { echo $f }\necho done")
        assert result.stdout == "done\n"
