from __future__ import annotations

import pytest

from betterbuild.git_facts.git import GitRepository


@pytest.mark.parametrize(
    "branch, main, main_or_master, release, hotfix, feature, develop",
    [
        ("main", True, True, False, False, False, False),
        ("master", False, True, False, False, False, False),
        ("release/1.2", False, False, True, False, False, False),
        ("hotfix/crash", False, False, False, True, False, False),
        ("feature/login", False, False, False, False, True, False),
        ("develop", False, False, False, False, False, True),
        (None, False, False, False, False, False, False),
    ],
)
def test_branch_classification(branch, main, main_or_master, release, hotfix, feature, develop):
    repo = GitRepository(branch=branch)
    assert repo.is_on_main_branch() is main
    assert repo.is_on_main_or_master_branch() is main_or_master
    assert repo.is_on_release_branch() is release
    assert repo.is_on_hotfix_branch() is hotfix
    assert repo.is_on_feature_branch() is feature
    assert repo.is_on_develop_branch() is develop


@pytest.mark.parametrize(
    "remote",
    [
        "git@github.com:acme/tool.git",
        "https://github.com/acme/tool.git",
        "https://github.com/acme/tool",
        "ssh://git@github.com/acme/tool.git",
    ],
)
def test_urls(remote):
    repo = GitRepository(remote=remote)
    assert repo.https_url == "https://github.com/acme/tool"
    assert repo.ssh_url == "git@github.com:acme/tool.git"


def test_urls_without_remote():
    repo = GitRepository()
    assert repo.https_url is None
    assert repo.ssh_url is None
