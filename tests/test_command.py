from miniserver.entities.command import Command


def test_verb_is_upper_cased_and_argument_kept():
    command = Command("cwd some dir\r\n")
    assert command.get_name() == "CWD"
    assert command.get_argument() == "some dir"


def test_argument_follows_first_whitespace_run():
    command = Command("STOR    name with  spaces.txt\r\n")
    assert command.get_argument() == "name with  spaces.txt"


def test_no_argument():
    command = Command("PWD\r\n")
    assert command.get_name() == "PWD"
    assert not command.has_argument()
    assert command.get_argument("x") == "x"


def test_blank_line_is_empty():
    assert Command("\r\n").is_empty()
    assert Command("   \r\n").is_empty()


def test_quotes_are_not_interpreted():
    command = Command('RETR "odd name.txt\r\n')
    assert command.get_argument() == '"odd name.txt'
