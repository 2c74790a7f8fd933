"""Tests for the service registry and memoized selections."""

import pytest

from platform_setup.credentials import ValueResolver
from platform_setup.exceptions import ConfigurationError, ServiceNotFoundError
from platform_setup.services import (
    SERVICES,
    disable_service,
    enable_service,
    get_ingestor,
    get_service,
    prepare_git_url,
    resolve_github_auth,
    select_ingestors,
    select_services,
    selected_optional_ids,
)
from platform_setup.services.selection import INGESTORS_KEY, OPTIONAL_SERVICES_KEY
from tests.fakes import FakePrompter


class TestRegistry:
    """Test registry lookups."""

    def test_mandatory_services(self):
        """Test contactdb and dataindex are always installed."""
        assert [s.id for s in SERVICES if s.mandatory] == ["contactdb", "dataindex"]

    def test_get_service(self):
        """Test lookup by id."""
        service = get_service("babelfish")

        assert service.branch == "authless-ux"
        assert service.port == 8880
        assert service.repo_url == "https://github.com/Monadical-SAS/babelfish.git"

    def test_unknown_service(self):
        """Test unknown ids raise ServiceNotFoundError with a suggestion."""
        with pytest.raises(ServiceNotFoundError) as exc_info:
            get_service("crm")

        assert exc_info.value.service_id == "crm"
        assert "contactdb" in exc_info.value.suggestion

    def test_get_ingestor_includes_babelfish(self):
        """Test the auto-configured babelfish ingestor can be looked up."""
        assert get_ingestor("babelfish").env_prefix == "DATAINDEX_BABELFISH"

    def test_unknown_ingestor(self):
        """Test unknown ingestor ids raise ServiceNotFoundError."""
        with pytest.raises(ServiceNotFoundError):
            get_ingestor("slack")


class TestPrepareGitUrl:
    """Test token injection into clone URLs."""

    def test_token_injected(self):
        """Test token auth rewrites GitHub HTTPS URLs."""
        url = prepare_git_url("https://github.com/Monadical-SAS/contactdb.git", "token", "ghp_x")

        assert url == "https://ghp_x@github.com/Monadical-SAS/contactdb.git"

    @pytest.mark.parametrize(
        ("url", "auth_type", "token"),
        [
            ("https://github.com/Monadical-SAS/contactdb.git", "ssh", "ghp_x"),
            ("https://github.com/Monadical-SAS/contactdb.git", "token", None),
            ("https://gitlab.com/org/repo.git", "token", "ghp_x"),
        ],
    )
    def test_url_unchanged(self, url, auth_type, token):
        """Test other combinations leave the URL alone."""
        assert prepare_git_url(url, auth_type, token) == url


class TestSelectServices:
    """Test optional service selection."""

    def test_prompts_and_caches(self, store):
        """Test the answer is cached as service ids."""
        prompter = FakePrompter(answers=["1,3"])

        selected = select_services(store, prompter)

        assert [s.id for s in selected] == ["contactdb", "dataindex", "babelfish", "dailydigest"]
        assert store.get(OPTIONAL_SERVICES_KEY) == "babelfish,dailydigest"

    def test_second_run_uses_cache(self, store):
        """Test a cached selection is not asked again."""
        select_services(store, FakePrompter(answers=["2"]))
        prompter = FakePrompter()

        selected = select_services(store, prompter)

        assert [s.id for s in selected] == ["contactdb", "dataindex", "meeting-prep"]
        assert prompter.asked == []

    def test_none_is_cached(self, store):
        """Test choosing nothing is remembered."""
        select_services(store, FakePrompter(answers=["none"]))

        selected = select_services(store, FakePrompter())

        assert [s.id for s in selected] == ["contactdb", "dataindex"]
        assert store.get(OPTIONAL_SERVICES_KEY) == "none"

    def test_empty_answer_means_none(self, store):
        """Test pressing Enter selects no optional service."""
        selected = select_services(store, FakePrompter(answers=[""]))

        assert [s.id for s in selected] == ["contactdb", "dataindex"]

    @pytest.mark.parametrize("answer", ["0", "4", "x", "1,9"])
    def test_invalid_selection(self, store, answer):
        """Test out-of-range numbers raise ConfigurationError and cache nothing."""
        with pytest.raises(ConfigurationError, match="Invalid selection"):
            select_services(store, FakePrompter(answers=[answer]))

        assert store.get(OPTIONAL_SERVICES_KEY) is None


class TestSelectIngestors:
    """Test DataIndex ingestor selection."""

    def test_prompts_and_caches(self, store):
        """Test chosen ingestors are cached as ids."""
        ingestors = select_ingestors(store, FakePrompter(answers=["1,4"]))

        assert [i.id for i in ingestors] == ["calendar", "reflector"]
        assert store.get(INGESTORS_KEY) == "calendar,reflector"

    def test_babelfish_added(self, store):
        """Test babelfish is appended without being cached."""
        ingestors = select_ingestors(store, FakePrompter(answers=["2"]), include_babelfish=True)

        assert [i.id for i in ingestors] == ["zulip", "babelfish"]
        assert store.get(INGESTORS_KEY) == "zulip"

    def test_cached_selection(self, store):
        """Test a cached selection is reused."""
        store.set(INGESTORS_KEY, "email")
        prompter = FakePrompter()

        assert [i.id for i in select_ingestors(store, prompter)] == ["email"]
        assert prompter.asked == []

    def test_cached_records_from_shell_installer(self, store):
        """Test id|name|prefix records are read as ids and cached as ids."""
        store.set(
            INGESTORS_KEY,
            "calendar|ICS Calendar (Fastmail Calendar, iCal)|DATAINDEX_PERSONAL,zulip|Zulip Chat|DATAINDEX_ZULIP",
        )
        prompter = FakePrompter()

        assert [i.id for i in select_ingestors(store, prompter)] == ["calendar", "zulip"]
        assert prompter.asked == []
        assert store.get(INGESTORS_KEY) == "calendar,zulip"


class TestEnableDisable:
    """Test editing the cached selection."""

    def test_enable(self, store):
        """Test enabling adds the service once."""
        assert enable_service(store, "babelfish") is True
        assert enable_service(store, "babelfish") is False
        assert selected_optional_ids(store) == ["babelfish"]

    def test_enable_mandatory_is_noop(self, store):
        """Test mandatory services are always enabled."""
        assert enable_service(store, "contactdb") is False
        assert store.get(OPTIONAL_SERVICES_KEY) is None

    def test_disable(self, store):
        """Test disabling removes the service."""
        store.set(OPTIONAL_SERVICES_KEY, "babelfish,dailydigest")

        assert disable_service(store, "babelfish") is True
        assert disable_service(store, "babelfish") is False
        assert selected_optional_ids(store) == ["dailydigest"]

    def test_disable_last_service(self, store):
        """Test removing the last service caches 'none'."""
        store.set(OPTIONAL_SERVICES_KEY, "babelfish")

        disable_service(store, "babelfish")

        assert store.get(OPTIONAL_SERVICES_KEY) == "none"

    def test_disable_mandatory(self, store):
        """Test mandatory services cannot be disabled."""
        with pytest.raises(ConfigurationError, match="mandatory"):
            disable_service(store, "dataindex")

    def test_unknown_service(self, store):
        """Test unknown ids raise ServiceNotFoundError."""
        with pytest.raises(ServiceNotFoundError):
            enable_service(store, "crm")


class TestGithubAuth:
    """Test GitHub authentication choice."""

    def test_ssh(self, store):
        """Test ssh needs no token."""
        resolver = ValueResolver(store, FakePrompter(answers=[""]))

        assert resolve_github_auth(resolver) == ("ssh", None)
        assert store.get("AUTH_TYPE") == "ssh"

    def test_token(self, store):
        """Test token auth asks for the token once."""
        resolver = ValueResolver(store, FakePrompter(answers=["token", "ghp_abc"]))

        assert resolve_github_auth(resolver) == ("token", "ghp_abc")
        assert resolve_github_auth(resolver) == ("token", "ghp_abc")

    def test_token_required(self, store):
        """Test token auth without a token is an error."""
        resolver = ValueResolver(store, FakePrompter(answers=["token", ""]))

        with pytest.raises(ConfigurationError, match="token is required"):
            resolve_github_auth(resolver)

    def test_invalid_type(self, store):
        """Test unknown auth types are rejected."""
        store.set("AUTH_TYPE", "password")

        with pytest.raises(ConfigurationError, match="Invalid auth type"):
            resolve_github_auth(ValueResolver(store, FakePrompter()))
