"""Tests for the source cursor."""

from pjsh.parser import Cursor, Position


class TestCursor:
    """Test code point access and position tracking."""

    def test_peek_does_not_consume(self):
        c = Cursor("ab")
        assert c.peek() == "a"
        assert c.peek(1) == "b"
        assert c.peek(2) == ""
        assert c.offset == 0

    def test_next_advances(self):
        c = Cursor("ab")
        assert c.next() == "a"
        assert c.next() == "b"
        assert c.next() == ""
        assert c.at_end()

    def test_line_and_column(self):
        c = Cursor("a\nbc")
        c.skip(3)
        assert c.position == Position(offset=3, line=2, column=2)

    def test_code_points(self):
        c = Cursor("é😀x")
        c.skip(2)
        assert c.peek() == "x"
        assert c.position.column == 3

    def test_startswith(self):
        c = Cursor("->| a")
        assert c.startswith("->|")
        c.next()
        assert not c.startswith("->|")

    def test_eat_while(self):
        c = Cursor("abc123")
        assert c.eat_while(str.isalpha) == "abc"
        assert c.peek() == "1"

    def test_clone_is_independent(self):
        c = Cursor("abc")
        other = c.clone()
        other.skip(2)
        assert c.peek() == "a"
        assert other.peek() == "c"

    def test_position_str(self):
        assert str(Position(offset=4, line=2, column=3)) == "line 2, column 3"
