from __future__ import annotations

import logging

from dependency_injector import containers, providers

from ..config.settings import AppConfig
from ..core.ports.clock_port import SystemClock
from ..core.retry import RetryPolicy, linear_backoff
from ..core.usecases.query_vulnerabilities import QueryVulnerabilitiesUseCase
from ..core.usecases.scan_repository import ScanRepositoryUseCase
from ..infra.github_fetcher import GitHubFileFetcher
from ..infra.github_search import GitHubCodeSearch
from ..infra.http_client import HttpClient
from ..infra.memory_store import InMemoryVulnerabilityStore
from ..infra.postgres_store import PostgresVulnerabilityStore, build_conninfo
from ..infra.record_parser import RecordParser

logger = logging.getLogger(__name__)


def http_client_resource(timeout_seconds):
	logger.debug("Opening HTTP client (timeout=%ss)", timeout_seconds)
	client = HttpClient(timeout_seconds=timeout_seconds)
	try:
		yield client
	finally:
		logger.debug("Closing HTTP client")
		client.close()


def postgres_store_resource(host, port, user, password, dbname, pool_size):
	logger.info(f"Connecting to PostgreSQL at {host}:{port}/{dbname}")
	store = PostgresVulnerabilityStore.connect(
		build_conninfo(host, port, user, password, dbname),
		pool_size=pool_size,
	)
	try:
		yield store
	finally:
		logger.debug("Closing PostgreSQL pool")
		store.close()


def log_token_status(github_token):
	if github_token:
		token_preview = f"{github_token[:8]}..." if len(github_token) > 8 else "***"
		logger.info(f"GitHub token found: {token_preview} (length: {len(github_token)})")
	else:
		logger.warning("No GitHub token configured - scans will be rejected")
	return github_token


class Container(containers.DeclarativeContainer):
	config = providers.Configuration(pydantic_settings=[AppConfig()])

	clock = providers.Singleton(SystemClock)

	github_token = providers.Singleton(log_token_status, github_token=config.github_token)

	http_client = providers.Resource(
		http_client_resource,
		timeout_seconds=config.request_timeout_seconds,
	)

	retry_policy = providers.Factory(
		RetryPolicy,
		max_retries=config.max_retries,
		backoff=providers.Callable(linear_backoff, config.backoff_seconds),
		clock=clock,
	)

	# Lazily opened: only scans/queries touch the database
	store = providers.Selector(
		config.storage_backend,
		postgres=providers.Resource(
			postgres_store_resource,
			host=config.db_host,
			port=config.db_port,
			user=config.db_user,
			password=config.db_password,
			dbname=config.db_name,
			pool_size=config.db_pool_size,
		),
		memory=providers.Singleton(InMemoryVulnerabilityStore),
	)

	search = providers.Factory(
		GitHubCodeSearch,
		http_client=http_client,
		token=github_token,
		retry_policy=retry_policy,
		search_url=config.search_url,
	)

	fetcher = providers.Factory(
		GitHubFileFetcher,
		http_client=http_client,
		token=github_token,
		retry_policy=retry_policy,
	)

	parser = providers.Factory(RecordParser)

	scan_uc = providers.Factory(
		ScanRepositoryUseCase,
		search=search,
		fetcher=fetcher,
		parser=parser,
		store=store,
		github_token=github_token,
		concurrency=config.concurrency,
		clock=clock,
	)
	query_uc = providers.Factory(QueryVulnerabilitiesUseCase, store=store)
