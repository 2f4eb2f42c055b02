from sheets.tokenizer import decode_csv_bytes, tokenize_csv


def test_quoted_field_keeps_comma_and_unescapes_doubled_quote():
    rows = tokenize_csv('"Muros, losa y ""castillos"""\n')

    assert rows == [['Muros, losa y "castillos"']]


def test_newline_inside_quotes_does_not_split_the_row():
    rows = tokenize_csv('a,"line one\nline two",c\nd,e,f\n')

    assert rows == [["a", "line one\nline two", "c"], ["d", "e", "f"]]


def test_crlf_and_lf_both_terminate_rows():
    rows = tokenize_csv("a,b\r\nc,d\ne,f")

    assert rows == [["a", "b"], ["c", "d"], ["e", "f"]]


def test_trailing_newline_does_not_emit_a_ghost_row():
    assert tokenize_csv("a,b\n") == [["a", "b"]]
    assert tokenize_csv("") == []


def test_fields_are_trimmed_and_blank_lines_keep_their_position():
    rows = tokenize_csv("  a , b \n\nc,d\n")

    assert rows == [["a", "b"], [""], ["c", "d"]]


def test_unterminated_quote_emits_what_was_read():
    rows = tokenize_csv('x,y\n1,"never closed')

    assert rows[0] == ["x", "y"]
    assert rows[1][0] == "1"
    assert rows[1][1] == "never closed"


def test_decode_csv_bytes_strips_bom_and_falls_back_to_latin1():
    assert decode_csv_bytes("\ufeffFecha,Monto".encode("utf-8")) == "Fecha,Monto"
    assert decode_csv_bytes("Construcción".encode("latin-1")) == "Construcción"


def test_quoted_field_after_space_keeps_its_comma():
    rows = tokenize_csv('Legal, "1,234.00",x\n')

    assert rows == [["Legal", "1,234.00", "x"]]


def test_lone_carriage_return_does_not_end_the_row():
    assert tokenize_csv("a\rb,c\n") == [["a\rb", "c"]]
    assert tokenize_csv("a,b\r\r\nc,d") == [["a", "b"], ["c", "d"]]
    assert tokenize_csv('"x\ry",z\n') == [["x\ry", "z"]]
