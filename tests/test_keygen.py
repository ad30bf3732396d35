import stat

import git


def test_keygen(invoke, tools, calls):
    result = invoke(['keygen'])
    assert result.exit_code == 0, result.output
    assert tools.key_file.read_text().startswith('# public key: age1fake')
    assert list(tools.key_file.parent.iterdir()) == [tools.key_file]
    assert len(calls()) == 1


def test_keygen_is_owner_only(invoke, tools):
    invoke(['keygen'])
    assert stat.S_IMODE(tools.key_file.stat().st_mode) == 0o600


def test_keygen_refuses_to_overwrite(invoke, tools, calls):
    tools.key_file.parent.mkdir()
    tools.key_file.write_text('AGE-SECRET-KEY-1ORIGINAL\n')

    result = invoke(['keygen'])

    assert result.exit_code == 1
    assert tools.key_file.read_text() == 'AGE-SECRET-KEY-1ORIGINAL\n'
    assert calls() == []


def test_keygen_downloads_age(invoke, config, server, age_archive):
    result = invoke(['keygen'])

    assert result.exit_code == 0, result.output
    assert server.requests == [age_archive]
    assert config.age_keygen_binary.stat().st_mode & stat.S_IXUSR
    assert config.key_file.exists()


def test_keygen_warns_when_key_is_tracked(invoke, tools, caplog):
    git.Repo.init(tools.root)
    invoke(['keygen'])
    assert f"{tools.key_file} is not excluded by .gitignore" in caplog.text


def test_keygen_quiet_when_key_is_ignored(invoke, tools, caplog):
    git.Repo.init(tools.root)
    (tools.root / '.gitignore').write_text('.age/\nbin/\nsecrets.env\n')
    invoke(['keygen'])
    assert "is not excluded by .gitignore" not in caplog.text


def test_keygen_in_bare_repository(invoke, tools):
    git.Repo.init(tools.root, bare=True)
    result = invoke(['keygen'])
    assert result.exit_code == 0, result.output
    assert tools.key_file.exists()
