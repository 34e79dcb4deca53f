"""Base deployer class with shared functionality."""

from __future__ import annotations

import tempfile
from abc import ABC, abstractmethod
from contextlib import ExitStack
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
from loguru import logger as default_logger
from rich.text import Text

from helm_ci.infra.templating import (
    PlaceholderResolver,
    SecretEncodeError,
    SecretEncoder,
)
from helm_ci.infra.vault import SecretStoreClient, SecretStoreError

from .constants import DeploymentConstants
from .errors import DeploymentError
from .reconciliation import (
    Confirmation,
    ReconciliationPlanner,
    ReconciliationResult,
    ReconciliationSource,
)
from .shell_commands import CommandResult, ShellCommands

if TYPE_CHECKING:
    from loguru import Logger

    from helm_ci.cli.shared.console import CLIConsole
    from helm_ci.config import DeployConfig
    from helm_ci.infra.templating.placeholders import SecretSource


class BaseDeployer(ABC):
    """Abstract base class for the Helm and raw-manifest deployers.

    A deployer owns everything one ``deploy()`` call creates: the secret
    store connection and every temporary file. Both are released when the
    call returns, whether it succeeded or not.
    """

    def __init__(
        self,
        config: DeployConfig,
        console: CLIConsole,
        confirmation: Confirmation,
        *,
        commands: ShellCommands | None = None,
        secret_source: SecretSource | None = None,
        constants: DeploymentConstants | None = None,
        logger: Logger | None = None,
    ) -> None:
        """Initialize the deployer.

        Args:
            config: Validated deployment configuration
            console: CLI console for user-facing output
            confirmation: Gate consulted before applying
            commands: Shell command executor (defaults to real subprocesses)
            secret_source: Secret lookup to use instead of a client built from
                the configuration
            constants: Deployment constants
            logger: Logger for diagnostics
        """
        self.config = config
        self.console = console
        self.confirmation = confirmation
        self.commands = commands or ShellCommands()
        self.constants = constants or DeploymentConstants()
        self.logger = logger or default_logger.bind(component="deployer")
        self.encoder = SecretEncoder(logger=self.logger)

        self._secret_source = secret_source
        self._resolver: PlaceholderResolver | None = None
        self._stack: ExitStack | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def deploy(self) -> ReconciliationResult:
        """Run one deployment attempt.

        Raises:
            DeploymentError: If preparing the deployment fails. Failures of
                the diff or apply steps are reported in the result instead.
        """
        with ExitStack() as stack:
            self._stack = stack
            try:
                self._resolver = self._open_resolver(stack)
                return self._deploy()
            finally:
                self._resolver = None
                self._stack = None

    @abstractmethod
    def _deploy(self) -> ReconciliationResult:
        """Prepare inputs and reconcile them against the cluster."""

    def _open_resolver(self, stack: ExitStack) -> PlaceholderResolver | None:
        source = self._secret_source
        if source is None:
            settings = self.config.secret_store_settings()
            if settings is None:
                self.logger.debug("No Vault URL configured, using original values files")
                return None
            try:
                client = SecretStoreClient(settings, logger=self.logger)
            except SecretStoreError as exc:
                raise DeploymentError("failed to initialize vault client", str(exc)) from exc
            stack.callback(client.close)
            source = client
        return PlaceholderResolver(source, logger=self.logger)

    def reconcile(self, source: ReconciliationSource) -> ReconciliationResult:
        """Run the reconciliation steps for ``source``."""
        planner = ReconciliationPlanner(
            source,
            self.confirmation,
            constants=self.constants,
            logger=self.logger,
        )
        return planner.run()

    # =========================================================================
    # Temporary Files
    # =========================================================================

    def write_temp_file(
        self, content: str | bytes, *, prefix: str, suffix: str = ".yml"
    ) -> Path:
        """Write content to a temp file removed when ``deploy()`` returns."""
        binary = isinstance(content, bytes)
        with tempfile.NamedTemporaryFile(
            "wb" if binary else "w",
            encoding=None if binary else "utf-8",
            prefix=prefix,
            suffix=suffix,
            delete=False,
        ) as handle:
            handle.write(content)
        path = Path(handle.name)
        self.register_temp_file(path)
        return path

    def register_temp_file(self, path: Path) -> None:
        """Remove ``path`` when ``deploy()`` returns."""
        if self._stack is None:
            raise RuntimeError("temp files can only be registered during deploy()")
        self._stack.callback(path.unlink, missing_ok=True)

    # =========================================================================
    # Values Processing
    # =========================================================================

    def process_values_file(self, path: Path) -> Path:
        """Resolve secret placeholders in a values file or manifest.

        Returns:
            Path of a temp file holding the processed content, or ``path``
            itself when no secret store is configured
        """
        if self._resolver is None:
            return path

        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise DeploymentError(f"failed to read values file {path}", str(exc)) from exc

        try:
            processed = self._resolver.resolve(content)
            processed = self.encoder.apply_if_secret(processed)
        except SecretStoreError as exc:
            raise DeploymentError(
                f"failed to process vault templates in file {path}", str(exc)
            ) from exc
        except SecretEncodeError as exc:
            raise DeploymentError(f"failed to encode Secret in file {path}", str(exc)) from exc

        if self.config.debug:
            self.console.print_debug_block(f"Processed {path.name}", processed)

        processed_path = self.write_temp_file(
            processed, prefix=self.constants.VALUES_TMP_PREFIX
        )
        self.logger.info(f"Successfully processed values file: {path}")
        return processed_path

    # =========================================================================
    # Root CA
    # =========================================================================

    def setup_root_ca(self) -> None:
        """Distribute the configured root CA as the ``custom-root-ca`` secret.

        Creates the target namespace when needed. Does nothing when no root
        CA is configured.
        """
        source = self.config.root_ca
        if not source:
            return

        self.info(f"Setting up Root CA from: {source}")
        cert_data = self._load_root_ca(source)
        cert_file = self.write_temp_file(
            cert_data, prefix=self.constants.ROOT_CA_TMP_PREFIX, suffix=".crt"
        )

        namespace = self.config.namespace
        self.logger.info(f"Creating namespace: {namespace}")
        self._apply_rendered(
            self.commands.kubectl.render_namespace(namespace), "namespace"
        )

        self.logger.info(f"Creating CA secret in namespace: {namespace}")
        self._apply_rendered(
            self.commands.kubectl.render_generic_secret(
                self.constants.ROOT_CA_SECRET_NAME,
                namespace,
                {self.constants.ROOT_CA_SECRET_KEY: cert_file},
            ),
            "secret",
        )
        self.success("Root CA setup completed successfully")

    def _load_root_ca(self, source: str) -> bytes:
        if source.startswith(("http://", "https://")):
            self.warning(
                "Downloading root CA without TLS verification; "
                "the certificate itself cannot be verified yet"
            )
            try:
                response = httpx.get(
                    source,
                    verify=False,
                    follow_redirects=True,
                    timeout=self.constants.ROOT_CA_DOWNLOAD_TIMEOUT,
                )
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise DeploymentError("failed to download root CA", str(exc)) from exc
            return response.content

        try:
            return Path(source).read_bytes()
        except OSError as exc:
            raise DeploymentError("failed to read root CA file", str(exc)) from exc

    def _apply_rendered(self, rendered: CommandResult, what: str) -> None:
        if not rendered.success:
            raise DeploymentError(f"failed to create {what} yaml", rendered.stderr)
        applied = self.commands.kubectl.apply_stdin(rendered.stdout)
        if not applied.success:
            raise DeploymentError(f"failed to apply {what}", applied.stderr)

    # =========================================================================
    # Output
    # =========================================================================

    def stream_output(self, line: str) -> None:
        """Forward one line of tool output to the console."""
        self.console.print(Text(line, style="dim"))

    def success(self, message: str) -> None:
        self.console.ok(message)

    def warning(self, message: str) -> None:
        self.console.warn(message)

    def info(self, message: str) -> None:
        self.console.info(message)
