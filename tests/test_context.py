from __future__ import annotations

import pytest

from betterbuild.context import BuildContext, Configuration, detect_local_build
from betterbuild.git_facts.git import GitRepository


def test_local_build_defaults_to_debug(tmp_path):
    ctx = BuildContext.from_env(root=tmp_path, env={})
    assert ctx.is_local_build
    assert ctx.configuration is Configuration.DEBUG
    assert ctx.api_key is None
    assert ctx.root == tmp_path.resolve()


def test_server_build_defaults_to_release(tmp_path):
    ctx = BuildContext.from_env(root=tmp_path, env={"GITHUB_ACTIONS": "true"})
    assert not ctx.is_local_build
    assert ctx.configuration is Configuration.RELEASE


def test_environment_overrides(tmp_path):
    env = {
        "CI": "1",
        "BETTERBUILD_CONFIGURATION": "debug",
        "BETTERBUILD_API_KEY": "secret",
        "BETTERBUILD_FEED_URL": "https://feed.example/v3/index.json",
    }
    ctx = BuildContext.from_env(root=tmp_path, env=env)
    assert ctx.configuration is Configuration.DEBUG
    assert ctx.api_key == "secret"
    assert ctx.feed_url == "https://feed.example/v3/index.json"
    assert "secret" not in repr(ctx)


def test_explicit_overrides_win(tmp_path):
    ctx = BuildContext.from_env(
        root=tmp_path,
        env={"BETTERBUILD_API_KEY": "from-env"},
        configuration=Configuration.RELEASE,
        api_key="from-cli",
        feed_url=None,
    )
    assert ctx.configuration is Configuration.RELEASE
    assert ctx.api_key == "from-cli"


def test_configuration_parse():
    assert Configuration.parse("Release") is Configuration.RELEASE
    assert str(Configuration.DEBUG) == "Debug"
    with pytest.raises(ValueError):
        Configuration.parse("Profile")


def test_detect_local_build():
    assert detect_local_build({})
    assert not detect_local_build({"TF_BUILD": "True"})
    assert detect_local_build({"CI": ""})


def test_layout_and_injected_collaborators(tmp_path):
    repo = GitRepository(branch="main")
    ctx = BuildContext(root=tmp_path, git_repository=repo, version_text="2.0.0")
    assert ctx.repository is repo
    assert ctx.version == "2.0.0"
    assert ctx.artifacts_dir == tmp_path / ".artifacts"
    assert ctx.pack_dir == tmp_path / "packages"
    assert ctx.publish_dir == tmp_path / "publish"
    assert ctx.source_dir == tmp_path / "src"
    assert ctx.results_dir == tmp_path / "TestResults"
