"""Tests for the GitHub and npm adapters and the cross-source resolver."""

import logging

import httpx

from pkgscore.adapters import GitHubAdapter, NpmAdapter, classify_url, resolve_github_adapter
from pkgscore.adapters.resolver import github_identity_from_repository_url
from pkgscore.models import RepositoryIdentity, SourceKind

REPO = "/repos/octo/widget"

REPO_PAYLOAD = {
    "stargazers_count": 1200,
    "forks_count": 80,
    "open_issues_count": 14,
    "watchers_count": 1200,
    "has_wiki": True,
    "has_pages": False,
    "has_discussions": True,
    "license": {"key": "mit", "spdx_id": "MIT"},
}

NPM_DOCUMENT = {
    "name": "left-pad",
    "dist-tags": {"latest": "1.3.0"},
    "versions": {
        "1.0.0": {"dependencies": {"old": "^1.0.0"}},
        "1.3.0": {
            "dependencies": {"a": "^1.0.0", "b": "^2.0.0"},
            "devDependencies": {"eslint": "^8.0.0"},
            "scripts": {"test": "node test.js"},
        },
    },
    "maintainers": [{"name": "stevemao", "email": "steve@example.com"}, "Alice <alice@example.com>"],
    "repository": {"type": "git", "url": "git+https://github.com/stevemao/left-pad.git"},
    "readme": "# left-pad\n",
    "license": "WTFPL",
    "time": {"created": "2014-03-14T00:00:00.000Z", "1.3.0": "2018-04-09T01:35:44.000Z"},
}


def github_adapter(client, config, url="https://github.com/octo/widget") -> GitHubAdapter:
    return GitHubAdapter(classify_url(url), client=client, config=config)


def npm_adapter(client, config, url="https://www.npmjs.com/package/left-pad") -> NpmAdapter:
    return NpmAdapter(classify_url(url), client=client, config=config)


class TestGitHubAdapter:
    async def test_fetch_repository_metadata(self, make_client, config):
        adapter = github_adapter(make_client({REPO: REPO_PAYLOAD}), config)
        metadata = await adapter.fetch_repository_metadata()

        assert metadata is not None
        assert metadata.stars == 1200
        assert metadata.open_issues == 14
        assert metadata.has_wiki is True
        assert metadata.license == "MIT"
        assert adapter.last_return_code == 200

    async def test_metadata_is_memoized(self, make_client, config):
        calls: list[str] = []
        adapter = github_adapter(make_client({REPO: REPO_PAYLOAD}, calls), config)

        first = await adapter.fetch_repository_metadata()
        second = await adapter.fetch_repository_metadata()

        assert first is second
        assert calls == [REPO]

    async def test_missing_repository_returns_none(self, make_client, config):
        adapter = github_adapter(make_client({}), config)
        assert await adapter.fetch_repository_metadata() is None
        assert adapter.last_return_code == 404

    async def test_server_error_returns_empty(self, make_client, config, caplog):
        routes = {f"{REPO}/contributors": httpx.Response(500, json={"message": "boom"})}
        adapter = github_adapter(make_client(routes), config)

        with caplog.at_level(logging.ERROR, logger="pkgscore"):
            assert await adapter.fetch_contributors() == []
        assert "Error fetching contributors" in caplog.text

    async def test_transport_error_returns_empty(self, config):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            adapter = github_adapter(client, config)
            assert await adapter.fetch_readme() is None
            assert adapter.last_return_code == 0

    async def test_fetch_contributors(self, make_client, config):
        routes = {
            f"{REPO}/contributors": [
                {"login": "alice", "contributions": 40},
                {"login": "bob", "contributions": 2},
            ]
        }
        adapter = github_adapter(make_client(routes), config)
        contributors = await adapter.fetch_contributors()
        assert [(c.login, c.contributions) for c in contributors] == [("alice", 40), ("bob", 2)]

    async def test_fetch_readme_decodes_content(self, make_client, config, contents):
        adapter = github_adapter(make_client({f"{REPO}/readme": contents("# Widget\n")}), config)
        assert await adapter.fetch_readme() == "# Widget\n"

    async def test_fetch_issues(self, make_client, config):
        routes = {
            f"{REPO}/issues": [
                {"number": 1, "created_at": "2024-01-01T00:00:00Z", "closed_at": None, "comments": 3},
                {
                    "number": 2,
                    "created_at": "2024-01-02T00:00:00Z",
                    "closed_at": "2024-01-03T00:00:00Z",
                    "comments": 0,
                    "pull_request": {"url": "..."},
                },
            ]
        }
        adapter = github_adapter(make_client(routes), config)
        issues = await adapter.fetch_issues(limit=100)

        assert [i.number for i in issues] == [1, 2]
        assert issues[0].comment_count == 3
        assert issues[0].closed_at is None
        assert issues[1].is_pull_request is True

    async def test_fetch_issue_comments(self, make_client, config):
        routes = {f"{REPO}/issues/7/comments": [{"created_at": "2024-01-01T05:00:00Z"}]}
        adapter = github_adapter(make_client(routes), config)
        timestamps = await adapter.fetch_issue_comments(7)
        assert len(timestamps) == 1
        assert timestamps[0].hour == 5

    async def test_path_exists(self, make_client, config, contents):
        routes = {f"{REPO}/contents/tests": [{"name": "test_app.py"}]}
        adapter = github_adapter(make_client(routes), config)
        assert await adapter.path_exists("tests") is True
        assert await adapter.path_exists("test") is False

    async def test_last_commit_date(self, make_client, config):
        routes = {f"{REPO}/commits": [{"commit": {"committer": {"date": "2024-06-01T12:00:00Z"}}}]}
        adapter = github_adapter(make_client(routes), config)
        last_commit = await adapter.fetch_last_commit_date()
        assert last_commit is not None
        assert (last_commit.year, last_commit.month) == (2024, 6)

    async def test_closed_issue_count(self, make_client, config):
        seen = {}

        def search(request):
            seen["q"] = request.url.params["q"]
            return httpx.Response(200, json={"total_count": 42, "items": []})

        adapter = github_adapter(make_client({"/search/issues": search}), config)
        assert await adapter.fetch_closed_issue_count() == 42
        assert seen["q"] == "repo:octo/widget type:issue state:closed"

    async def test_malformed_metadata_returns_none(self, make_client, config, caplog):
        routes = {REPO: {"stargazers_count": "lots", "license": "MIT"}}
        adapter = github_adapter(make_client(routes), config)

        with caplog.at_level(logging.ERROR, logger="pkgscore"):
            assert await adapter.fetch_repository_metadata() is None
        assert "Error fetching repository octo/widget" in caplog.text

    async def test_malformed_comments_return_empty(self, make_client, config):
        routes = {f"{REPO}/issues/7/comments": ["not a comment"]}
        adapter = github_adapter(make_client(routes), config)
        assert await adapter.fetch_issue_comments(7) == []

    async def test_malformed_commit_returns_none(self, make_client, config):
        routes = {f"{REPO}/commits": [{"commit": None}]}
        adapter = github_adapter(make_client(routes), config)
        assert await adapter.fetch_last_commit_date() is None

    async def test_non_object_commit_returns_none(self, make_client, config):
        routes = {f"{REPO}/commits": ["abc123"]}
        adapter = github_adapter(make_client(routes), config)
        assert await adapter.fetch_last_commit_date() is None

    async def test_sends_bearer_token(self, make_client, config):
        seen = {}

        def repo(request):
            seen["authorization"] = request.headers.get("Authorization")
            return httpx.Response(200, json=REPO_PAYLOAD)

        adapter = github_adapter(make_client({REPO: repo}), config)
        await adapter.fetch_repository_metadata()
        assert seen["authorization"] == "Bearer test-token"

    async def test_rate_limit_warning(self, make_client, config, caplog):
        routes = {
            REPO: httpx.Response(
                200,
                json=REPO_PAYLOAD,
                headers={"X-RateLimit-Remaining": "3", "X-RateLimit-Limit": "60"},
            )
        }
        adapter = github_adapter(make_client(routes), config)
        with caplog.at_level(logging.WARNING, logger="pkgscore"):
            await adapter.fetch_repository_metadata()

        assert adapter.rate_limit_remaining == 3
        assert "rate limit nearly exhausted" in caplog.text

    async def test_resolves_identity_from_url(self, make_client, config):
        identity = RepositoryIdentity(
            source=SourceKind.GITHUB, original_url="https://github.com/octo/widget"
        )
        adapter = GitHubAdapter(identity, client=make_client({REPO: REPO_PAYLOAD}), config=config)
        metadata = await adapter.fetch_repository_metadata()
        assert metadata is not None
        assert adapter.owner == "octo"
        assert adapter.repo == "widget"


class TestNpmAdapter:
    async def test_fetch_repository_metadata(self, make_client, config):
        adapter = npm_adapter(make_client({"/left-pad": NPM_DOCUMENT}), config)
        metadata = await adapter.fetch_repository_metadata()

        assert metadata is not None
        assert metadata.latest_version == "1.3.0"
        assert metadata.versions == ["1.0.0", "1.3.0"]
        assert metadata.dependencies == {"a": "^1.0.0", "b": "^2.0.0"}
        assert metadata.dev_dependencies == {"eslint": "^8.0.0"}
        assert metadata.scripts["test"] == "node test.js"
        assert metadata.repository_url == "git+https://github.com/stevemao/left-pad.git"
        assert metadata.license == "WTFPL"

    async def test_unknown_package_returns_none(self, make_client, config):
        adapter = npm_adapter(make_client({}), config)
        assert await adapter.fetch_repository_metadata() is None
        assert await adapter.fetch_contributors() == []

    async def test_contributors_fall_back_to_maintainers(self, make_client, config):
        adapter = npm_adapter(make_client({"/left-pad": NPM_DOCUMENT}), config)
        contributors = await adapter.fetch_contributors()

        assert [c.login for c in contributors] == ["stevemao", "Alice"]
        assert all(c.contributions == 1 for c in contributors)

    async def test_contributors_preferred_over_maintainers(self, make_client, config):
        document = {**NPM_DOCUMENT, "contributors": [{"email": "only@example.com"}, {}]}
        adapter = npm_adapter(make_client({"/left-pad": document}), config)
        contributors = await adapter.fetch_contributors()
        assert [c.login for c in contributors] == ["only@example.com", "unknown"]

    async def test_issue_reads_are_empty(self, make_client, config):
        adapter = npm_adapter(make_client({"/left-pad": NPM_DOCUMENT}), config)
        assert await adapter.fetch_issues() == []
        assert await adapter.fetch_issue_comments(1) == []

    async def test_readme_and_license(self, make_client, config):
        adapter = npm_adapter(make_client({"/left-pad": NPM_DOCUMENT}), config)
        assert await adapter.fetch_readme() == "# left-pad\n"
        assert await adapter.fetch_license_id() == "WTFPL"

    async def test_last_publish_date(self, make_client, config):
        adapter = npm_adapter(make_client({"/left-pad": NPM_DOCUMENT}), config)
        published = await adapter.fetch_last_publish_date()
        assert published is not None
        assert (published.year, published.month, published.day) == (2018, 4, 9)


class TestResolver:
    def test_ssh_url(self):
        identity = github_identity_from_repository_url("git+ssh://git@github.com/expressjs/express.git")
        assert identity is not None
        assert (identity.owner, identity.repo) == ("expressjs", "express")
        assert identity.source == SourceKind.GITHUB

    def test_https_url(self):
        identity = github_identity_from_repository_url("git+https://github.com/stevemao/left-pad.git")
        assert identity is not None
        assert (identity.owner, identity.repo) == ("stevemao", "left-pad")

    def test_git_protocol_url(self):
        identity = github_identity_from_repository_url("git://github.com/isaacs/rimraf.git")
        assert identity is not None
        assert (identity.owner, identity.repo) == ("isaacs", "rimraf")

    def test_non_github_url(self):
        assert github_identity_from_repository_url("git+https://gitlab.com/group/proj.git") is None
        assert github_identity_from_repository_url(None) is None

    async def test_resolve_shares_client_and_config(self, make_client, config):
        client = make_client({"/left-pad": NPM_DOCUMENT})
        adapter = npm_adapter(client, config)

        linked = await resolve_github_adapter(adapter)

        assert isinstance(linked, GitHubAdapter)
        assert (linked.owner, linked.repo) == ("stevemao", "left-pad")
        assert linked.client is client
        assert linked.config is config

    async def test_resolution_is_memoized(self, make_client, config):
        adapter = npm_adapter(make_client({"/left-pad": NPM_DOCUMENT}), config)
        assert await resolve_github_adapter(adapter) is await resolve_github_adapter(adapter)

    async def test_unresolvable_package(self, make_client, config):
        document = {**NPM_DOCUMENT, "repository": None}
        adapter = npm_adapter(make_client({"/left-pad": document}), config)
        assert await resolve_github_adapter(adapter) is None

    async def test_github_adapter_is_not_resolved(self, make_client, config):
        adapter = github_adapter(make_client({}), config)
        assert await resolve_github_adapter(adapter) is None
