from main import _parse_args


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "0.0.0.0", "--port", "9000"])
    assert args.command == "serve"
    assert args.host == "0.0.0.0"
    assert args.port == 9000


def test_config_option_precedes_subcommand() -> None:
    args = _parse_args(["--config", "custom.yaml", "init-db"])
    assert args.command == "init-db"
    assert args.config == "custom.yaml"


def test_create_user_subcommand() -> None:
    args = _parse_args(["create-user", "ssar", "ssar@nate.com"])
    assert args.command == "create-user"
    assert args.username == "ssar"
