"""Tests for echo, true, false, exit, pwd and sleep."""

import pytest

from pjsh import Shell


class TestEcho:
    """Test the echo builtin."""

    @pytest.mark.asyncio
    async def test_echo(self):
        shell = Shell()
        result = await shell.exec("echo hello   world")
        assert result.stdout == "hello world\n"
        assert result.exit_code == 0

    @pytest.mark.asyncio
    async def test_no_newline(self):
        shell = Shell()
        result = await shell.exec("echo -n hello")
        assert result.stdout == "hello"

    @pytest.mark.asyncio
    async def test_empty(self):
        shell = Shell()
        result = await shell.exec("echo")
        assert result.stdout == "\n"


class TestTrueFalse:
    """Test true and false."""

    @pytest.mark.asyncio
    async def test_true(self):
        shell = Shell()
        result = await shell.exec("true")
        assert result.exit_code == 0

    @pytest.mark.asyncio
    async def test_false(self):
        shell = Shell()
        result = await shell.exec("false")
        assert result.exit_code == 1


class TestExit:
    """Test the exit builtin."""

    @pytest.mark.asyncio
    async def test_exit_stops_script(self):
        shell = Shell()
        result = await shell.exec("echo before\nexit 3\necho after")
        assert result.stdout == "before\n"
        assert result.exit_code == 3
        assert shell.exited

    @pytest.mark.asyncio
    async def test_exit_uses_last_code(self):
        shell = Shell()
        result = await shell.exec("false\nexit")
        assert result.exit_code == 1

    @pytest.mark.asyncio
    async def test_exit_code_wraps(self):
        shell = Shell()
        result = await shell.exec("exit 257")
        assert result.exit_code == 1

    @pytest.mark.asyncio
    async def test_non_numeric(self):
        shell = Shell()
        result = await shell.exec("exit abc")
        assert result.exit_code == 2
        assert "numeric argument required" in result.stderr
        assert not shell.exited

    @pytest.mark.asyncio
    async def test_exit_inside_function(self):
        shell = Shell()
        result = await shell.exec("fn f() { exit 4 }\nf\necho after")
        assert result.stdout == ""
        assert result.exit_code == 4


class TestPwd:
    """Test the pwd builtin."""

    @pytest.mark.asyncio
    async def test_pwd(self, tmp_path):
        shell = Shell(cwd=str(tmp_path))
        result = await shell.exec("pwd")
        assert result.stdout == f"{tmp_path}\n"

    @pytest.mark.asyncio
    async def test_too_many_arguments(self):
        shell = Shell()
        result = await shell.exec("pwd extra")
        assert result.exit_code == 1


class TestSleep:
    """Test the sleep builtin."""

    @pytest.mark.asyncio
    async def test_zero(self):
        shell = Shell()
        result = await shell.exec("sleep 0")
        assert result.exit_code == 0

    @pytest.mark.asyncio
    async def test_units_use_injected_clock(self):
        slept = []

        async def fake_sleep(seconds):
            slept.append(seconds)

        shell = Shell()
        shell._interpreter.ctx.sleep = fake_sleep
        result = await shell.exec("sleep 1.5\nsleep 2 minutes\nsleep 1 hours")
        assert result.exit_code == 0
        assert slept == [1.5, 120.0, 3600.0]

    @pytest.mark.asyncio
    async def test_invalid_duration(self):
        shell = Shell()
        result = await shell.exec("sleep soon")
        assert result.exit_code == 1
        assert "invalid duration" in result.stderr

    @pytest.mark.asyncio
    async def test_invalid_unit(self):
        shell = Shell()
        result = await shell.exec("sleep 1 fortnights")
        assert result.exit_code == 1
        assert "invalid time unit" in result.stderr
