import os

import pytest

import kayring_cli
from kayring import MIN_ITERATIONS, KeystoreDirectory

ROUNDS = str(MIN_ITERATIONS)
PRIVKEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


@pytest.fixture(autouse=True)
def clean_env(mocker, tmp_path, monkeypatch):
    mocker.patch.dict(os.environ)
    for key in list(os.environ):
        if key.startswith("KAYRING_"):
            del os.environ[key]
    # Keep load_dotenv away from any real .env.
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def keys(tmp_path):
    return str(tmp_path / "keys")


def run(capsys, *argv):
    kayring_cli.main(list(argv))
    return capsys.readouterr()


def run_fail(capsys, *argv):
    with pytest.raises(SystemExit) as exc_info:
        kayring_cli.main(list(argv))
    return exc_info.value.code, capsys.readouterr()


class TestCliSilent:
    def test_set_then_get(self, capsys, keys):
        out = run(capsys, "set", "main", "--value", PRIVKEY, "-p", "pw", "-s", "--dir", keys, "-d", ROUNDS)
        assert out.out == ""
        out = run(capsys, "get", "main", "-p", "pw", "-s", "--dir", keys)
        assert out.out.strip() == PRIVKEY

    def test_silent_without_password_uses_empty(self, capsys, keys, mocker):
        prompt = mocker.patch("kayring_cli.getpass.getpass")
        run(capsys, "set", "main", "--value", PRIVKEY, "-s", "--dir", keys, "-d", ROUNDS)
        out = run(capsys, "get", "main", "-s", "--dir", keys)
        assert out.out.strip() == PRIVKEY
        prompt.assert_not_called()

    def test_silent_set_requires_value(self, capsys, keys):
        code, out = run_fail(capsys, "set", "main", "-s", "--dir", keys, "-d", ROUNDS)
        assert code == 1
        assert "Value is required in silent mode" in out.err
        assert not os.path.exists(os.path.join(keys, "main"))

    def test_set_existing_fails(self, capsys, keys):
        run(capsys, "set", "main", "--value", PRIVKEY, "-s", "--dir", keys, "-d", ROUNDS)
        code, out = run_fail(capsys, "set", "main", "--value", "0x00", "-s", "--dir", keys, "-d", ROUNDS)
        assert code == 1
        assert "already exists" in out.err
        assert run(capsys, "get", "main", "-s", "--dir", keys).out.strip() == PRIVKEY

    def test_set_force_and_echo(self, capsys, keys):
        run(capsys, "set", "main", "--value", "0x01", "-s", "--dir", keys, "-d", ROUNDS)
        out = run(capsys, "set", "main", "--value", "0xabcd", "-s", "-f", "--echo", "--dir", keys, "-d", ROUNDS)
        assert out.out.strip() == "0xabcd"
        assert run(capsys, "get", "main", "-s", "--dir", keys).out.strip() == "0xabcd"

    @pytest.mark.parametrize("value", ["abcd", "0xzz", "0xabc"])
    def test_set_rejects_bad_hex(self, capsys, keys, value):
        code, out = run_fail(capsys, "set", "main", "--value", value, "-s", "--dir", keys, "-d", ROUNDS)
        assert code == 1
        assert "hex string" in out.err

    def test_get_wrong_password(self, capsys, keys):
        run(capsys, "set", "main", "--value", PRIVKEY, "-p", "pw", "-s", "--dir", keys, "-d", ROUNDS)
        code, out = run_fail(capsys, "get", "main", "-p", "bad", "-s", "--dir", keys)
        assert code == 1
        assert "Failed to decrypt" in out.err
        assert out.out == ""

    def test_get_missing(self, capsys, keys):
        code, out = run_fail(capsys, "get", "nobody", "-s", "--dir", keys)
        assert code == 1
        assert "No kaystore found for nobody" in out.err

    def test_rounds_below_floor(self, capsys, keys):
        code, out = run_fail(capsys, "set", "main", "--value", PRIVKEY, "-s", "--dir", keys, "-d", "10")
        assert code == 1
        assert "Iteration count" in out.err

    def test_list_and_clone(self, capsys, keys):
        run(capsys, "set", "b", "--value", PRIVKEY, "-p", "pw", "-s", "--dir", keys, "-d", ROUNDS)
        run(capsys, "set", "a", "--value", "0x01", "-s", "--dir", keys, "-d", ROUNDS)
        assert run(capsys, "list", "--dir", keys).out.strip() == "a, b"

        run(capsys, "clone", "b", "c", "--dir", keys)
        assert run(capsys, "list", "--dir", keys).out.strip() == "a, b, c"
        assert run(capsys, "get", "c", "-p", "pw", "-s", "--dir", keys).out.strip() == PRIVKEY

        code, out = run_fail(capsys, "clone", "a", "c", "--dir", keys)
        assert code == 1
        assert "already exists" in out.err
        run(capsys, "clone", "a", "c", "-f", "--dir", keys)
        assert run(capsys, "get", "c", "-s", "--dir", keys).out.strip() == "0x01"

    def test_list_empty_directory(self, capsys, keys):
        assert run(capsys, "list", "--dir", keys).out.strip() == ""

    def test_no_command_prints_help(self, capsys):
        code, out = run_fail(capsys)
        assert code == 0
        assert "kayring" in out.out


class TestCliEnvironment:
    def test_env_supplies_defaults(self, capsys, keys, monkeypatch):
        monkeypatch.setenv("KAYRING_DIR", keys)
        monkeypatch.setenv("KAYRING_PASSWORD", "envpw")
        monkeypatch.setenv("KAYRING_VALUE", PRIVKEY)
        monkeypatch.setenv("KAYRING_DERIVATION_ROUNDS", ROUNDS)
        run(capsys, "set", "main", "-s")
        assert KeystoreDirectory(keys).load("main").iterations == MIN_ITERATIONS
        assert run(capsys, "get", "main", "-s").out.strip() == PRIVKEY

    def test_dotenv_file_is_loaded(self, capsys, keys, tmp_path):
        (tmp_path / ".env").write_text(
            f"KAYRING_DIR={keys}\nKAYRING_PASSWORD=dotpw\nKAYRING_DERIVATION_ROUNDS={ROUNDS}\n"
        )
        run(capsys, "set", "main", "--value", PRIVKEY, "-s")
        assert run(capsys, "list").out.strip() == "main"
        code, _ = run_fail(capsys, "get", "main", "-p", "other", "-s")
        assert code == 1
        assert run(capsys, "get", "main", "-s").out.strip() == PRIVKEY


class TestCliInteractive:
    def test_set_prompts_for_password_and_value(self, capsys, keys, mocker):
        mocker.patch("kayring_cli.getpass.getpass", side_effect=["pw", "pw", PRIVKEY])
        out = run(capsys, "set", "main", "--dir", keys, "-d", ROUNDS)
        assert "Encrypting..." in out.out
        assert PRIVKEY not in out.out

        mocker.patch("kayring_cli.getpass.getpass", return_value="pw")
        assert run(capsys, "get", "main", "--dir", keys).out.strip() == PRIVKEY

    def test_password_mismatch(self, capsys, keys, mocker):
        mocker.patch("kayring_cli.getpass.getpass", side_effect=["pw", "typo"])
        code, out = run_fail(capsys, "set", "main", "--dir", keys, "-d", ROUNDS)
        assert code == 1
        assert "Passwords do not match" in out.err
        assert not os.path.exists(os.path.join(keys, "main"))

    def test_existing_name_fails_before_prompting(self, capsys, keys, mocker):
        run(capsys, "set", "main", "--value", PRIVKEY, "-s", "--dir", keys, "-d", ROUNDS)
        prompt = mocker.patch("kayring_cli.getpass.getpass")
        code, _ = run_fail(capsys, "set", "main", "--dir", keys, "-d", ROUNDS)
        assert code == 1
        prompt.assert_not_called()
