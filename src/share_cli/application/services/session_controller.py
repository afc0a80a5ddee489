"""Share session use-case service."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import NoReturn

from share_cli.application.services.hold_timer import HoldTimer
from share_cli.domain.entities import (
    Artifact,
    Connection,
    Endpoint,
    Session,
    ShareDetails,
    ShareRequest,
)
from share_cli.domain.errors import (
    BindError,
    ClipboardError,
    MissingInputError,
    PackagingError,
    PortAllocationError,
    SessionAbortedError,
    ShareError,
    TunnelError,
)
from share_cli.domain.events import (
    HoldExpired,
    KeepServing,
    SessionEvent,
    ShutdownRequested,
    TransferAborted,
    TransferCompleted,
    TransferProgress,
    TransferStarted,
)
from share_cli.domain.phases import (
    TERMINAL_PHASE_STATES,
    FatalErrorKind,
    PhaseName,
    PhaseState,
)
from share_cli.domain.ports import (
    Clipboard,
    EndpointAllocator,
    Packager,
    TransferOptions,
    TransferServer,
    TransferServerFactory,
    Tunnel,
    TunnelNegotiator,
)
from share_cli.domain.tokens import (
    generate_access_token,
    generate_password,
    subdomain_from_token,
)

SessionListener = Callable[[Session], None]

_DEFAULT_FATAL_KINDS: dict[PhaseName, FatalErrorKind] = {
    PhaseName.FILE: FatalErrorKind.PACKAGING_FAILED,
    PhaseName.SERVER: FatalErrorKind.BIND_FAILED,
    PhaseName.TUNNEL: FatalErrorKind.TUNNEL_EXHAUSTED,
}

logger = logging.getLogger(__name__)


class SessionController:
    """Orchestrates one share session from packaging to teardown.

    Startup runs the file, server, tunnel and clipboard phases in order. Once
    the link is live every transfer event and operator signal is consumed from
    a single queue, so session state is only ever mutated by one task.
    """

    def __init__(
        self,
        *,
        packager: Packager,
        allocator: EndpointAllocator,
        tunnel_negotiator: TunnelNegotiator,
        server_factory: TransferServerFactory,
        clipboard: Clipboard,
        hold_seconds: float = 60.0,
        tunnel_max_retries: int = 5,
        bind_retries: int = 1,
        subdomain_max_length: int = 20,
        tunnel_fallback_to_local: bool = False,
        token_factory: Callable[[], str] = generate_access_token,
        password_factory: Callable[[], str] = generate_password,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._packager = packager
        self._allocator = allocator
        self._tunnel_negotiator = tunnel_negotiator
        self._server_factory = server_factory
        self._clipboard = clipboard
        self._hold_seconds = hold_seconds
        self._tunnel_max_retries = tunnel_max_retries
        self._bind_retries = max(bind_retries, 0)
        self._subdomain_max_length = subdomain_max_length
        self._tunnel_fallback_to_local = tunnel_fallback_to_local
        self._password_factory = password_factory
        self._clock = clock

        self.session = Session(access_token=token_factory())
        self._events: asyncio.Queue[SessionEvent] = asyncio.Queue()
        self._listeners: list[SessionListener] = []
        self._hold_timer = HoldTimer(self._on_hold_expired, clock=clock)
        self._server: TransferServer | None = None
        self._tunnel: Tunnel | None = None
        self._shutdown_signaled = False
        self._finished = False
        self._closed = False

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a status listener and return its unsubscribe handle."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def request_shutdown(self) -> None:
        """Ask the session to terminate as soon as possible."""

        self._shutdown_signaled = True
        self._events.put_nowait(ShutdownRequested())

    def keep_serving(self) -> None:
        """Ask the session to cancel a pending auto-shutdown."""

        self._events.put_nowait(KeepServing())

    async def run(self, request: ShareRequest) -> None:
        """Start the session, serve until it ends and release everything."""

        try:
            if await self.start(request):
                await self.serve()
        finally:
            await self.close()

    async def start(self, request: ShareRequest) -> bool:
        """Run the startup phases.

        Returns False when shutdown was requested before the link went live.
        Raises `SessionAbortedError` after tearing down on a fatal failure.
        """

        artifact = await self._prepare_file(request)
        if self._honour_shutdown():
            return False

        endpoint = await self._start_server(artifact, tunneled=request.tunnel)
        if self._honour_shutdown():
            return False

        if request.tunnel:
            await self._open_tunnel(endpoint)
        else:
            self._set_phase(PhaseName.TUNNEL, PhaseState.STARTED)
            self._set_phase(PhaseName.TUNNEL, PhaseState.DONE, "Tunnel disabled")
        if self._honour_shutdown():
            return False

        await self._copy_to_clipboard()

        assert self.session.connection is not None
        self.session.details = ShareDetails(
            url=self.session.connection.url,
            checksum=artifact.checksum_hex,
            password=artifact.password,
        )
        self._set_phase(PhaseName.DOWNLOAD, PhaseState.PENDING, "Awaiting download")
        logger.info("Share is live at %s", self.session.connection.url)
        return True

    async def serve(self) -> None:
        """Consume transfer events and operator signals until the session ends."""

        while not self._finished:
            event = await self._events.get()
            self.apply(event)

    def apply(self, event: SessionEvent) -> None:
        """Apply one event to the session state."""

        if isinstance(event, TransferStarted):
            self._on_transfer_started(event)
        elif isinstance(event, TransferProgress):
            self._on_transfer_progress(event)
        elif isinstance(event, TransferCompleted):
            self._on_transfer_completed(event)
        elif isinstance(event, TransferAborted):
            self._on_transfer_aborted(event)
        elif isinstance(event, KeepServing):
            self._on_keep_serving()
        elif isinstance(event, ShutdownRequested):
            self._on_shutdown_requested()
        elif isinstance(event, HoldExpired):
            self._on_hold_expired_event(event)
        self._notify()

    @property
    def finished(self) -> bool:
        """Whether the session reached its end and no longer consumes events."""

        return self._finished

    async def close(self) -> None:
        """Release the timer, networking and temporary files exactly once."""

        if self._closed:
            return
        self._closed = True
        self._finished = True
        self._hold_timer.cancel()
        try:
            await self._close_networking()
        finally:
            await self._packager.cleanup()
        self._notify()

    async def _prepare_file(self, request: ShareRequest) -> Artifact:
        self._set_phase(PhaseName.FILE, PhaseState.STARTED, "Preparing file")
        if request.source is None and request.stdin is None:
            await self._abort(
                PhaseName.FILE,
                MissingInputError("Either stdin or [file] have to be given."),
                "No input given",
            )

        password = request.password or self._password_factory()
        try:
            artifact = await self._packager.package(
                request,
                password,
                fallback_name=self.session.access_token,
            )
        except (MissingInputError, PackagingError) as exc:
            await self._abort(PhaseName.FILE, exc, "Preparing file failed")

        self.session.file = artifact
        self._set_phase(PhaseName.FILE, PhaseState.DONE, "File prepared")
        return artifact

    async def _start_server(self, artifact: Artifact, *, tunneled: bool) -> Endpoint:
        self._set_phase(PhaseName.SERVER, PhaseState.STARTED, "Starting server")
        options = TransferOptions(
            artifact=artifact,
            access_token=self.session.access_token,
            tunneled=tunneled,
        )
        server = self._server_factory(options, self._events.put_nowait)
        self._server = server

        attempts = self._bind_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                endpoint = await self._allocator.allocate()
            except PortAllocationError as exc:
                await self._abort(
                    PhaseName.SERVER,
                    exc,
                    "Starting server failed, no free port",
                )
            try:
                await server.start(endpoint.port)
            except BindError as exc:
                if attempt < attempts:
                    logger.warning(
                        "Binding port %s failed (attempt %s/%s); probing again: %s",
                        endpoint.port,
                        attempt,
                        attempts,
                        exc,
                    )
                    continue
                await self._abort(PhaseName.SERVER, exc, "Starting server failed")
            break

        self.session.assign_endpoint(endpoint)
        self.session.connection = Connection(
            url=endpoint.url_for(self.session.access_token),
            close=self._close_networking,
        )
        self._set_phase(PhaseName.SERVER, PhaseState.DONE, "Server started")
        logger.info("Serving on %s:%s", endpoint.address, endpoint.port)
        return endpoint

    async def _open_tunnel(self, endpoint: Endpoint) -> None:
        self._set_phase(PhaseName.TUNNEL, PhaseState.STARTED, "Opening tunnel")
        subdomain = subdomain_from_token(
            self.session.access_token,
            self._subdomain_max_length,
        )
        try:
            tunnel = await self._tunnel_negotiator.open_tunnel(
                endpoint.port,
                subdomain,
                self._tunnel_max_retries,
            )
        except TunnelError as exc:
            if not self._tunnel_fallback_to_local:
                await self._abort(PhaseName.TUNNEL, exc, "Opening tunnel failed")
            logger.warning("Tunnel unavailable, sharing on the local network: %s", exc)
            assert self._server is not None
            self._server.require_token()
            self._set_phase(
                PhaseName.TUNNEL,
                PhaseState.ERRORED,
                "Tunnel failed, sharing locally",
            )
            return

        self._tunnel = tunnel
        self.session.connection = Connection(url=tunnel.url, close=self._close_networking)
        self._set_phase(PhaseName.TUNNEL, PhaseState.DONE, "Tunnel opened")

    async def _copy_to_clipboard(self) -> None:
        assert self.session.connection is not None
        self._set_phase(PhaseName.CLIPBOARD, PhaseState.STARTED, "Copying to clipboard")
        try:
            await self._clipboard.copy(self.session.connection.url)
        except ClipboardError as exc:
            logger.warning("Copying the URL to the clipboard failed: %s", exc)
            self._set_phase(
                PhaseName.CLIPBOARD,
                PhaseState.ERRORED,
                "Copying to clipboard failed",
            )
            return
        self._set_phase(PhaseName.CLIPBOARD, PhaseState.DONE, "Copied to clipboard")

    def _on_transfer_started(self, event: TransferStarted) -> None:
        logger.info("Download started by %s", event.client or "unknown client")
        self._begin_download()
        self.session.download_progress = 0.0

    def _on_transfer_progress(self, event: TransferProgress) -> None:
        if self.session.phase(PhaseName.DOWNLOAD).phase is PhaseState.STARTED:
            self.session.download_progress = event.fraction

    def _on_transfer_completed(self, event: TransferCompleted) -> None:
        self._begin_download()
        self.session.downloads_count += 1
        self.session.download_progress = 1.0
        self._set_phase(PhaseName.DOWNLOAD, PhaseState.DONE, "Downloaded")
        logger.info(
            "Download %s finished after %s bytes",
            self.session.downloads_count,
            event.bytes_sent,
        )
        if not self.session.shutdown_requested:
            self.session.hold_until = self._hold_timer.arm(self._hold_seconds)

    def _on_transfer_aborted(self, event: TransferAborted) -> None:
        logger.warning(
            "Download interrupted after %s bytes: %s",
            event.bytes_sent,
            event.reason,
        )
        if self.session.phase(PhaseName.DOWNLOAD).phase is PhaseState.STARTED:
            self._set_phase(PhaseName.DOWNLOAD, PhaseState.ERRORED, "Download interrupted")
        self.session.download_progress = None

    def _on_keep_serving(self) -> None:
        if self.session.hold_until is None:
            logger.debug("Keep serving requested without a pending auto-shutdown.")
            return
        self._hold_timer.cancel()
        self.session.hold_until = None
        if self.session.phase(PhaseName.DOWNLOAD).phase in TERMINAL_PHASE_STATES:
            self._set_phase(PhaseName.DOWNLOAD, PhaseState.PENDING, "Awaiting download")
        logger.info("Auto-shutdown cancelled; serving further downloads.")

    def _on_shutdown_requested(self) -> None:
        self.session.shutdown_requested = True
        self._hold_timer.cancel()
        self.session.hold_until = None
        self._finished = True
        logger.info("Shutdown requested.")

    def _on_hold_expired_event(self, event: HoldExpired) -> None:
        if self.session.hold_until is None or event.deadline != self.session.hold_until:
            return
        self._finished = True
        logger.info("Hold window elapsed; closing the share.")

    def _on_hold_expired(self, deadline: float) -> None:
        self._events.put_nowait(HoldExpired(deadline=deadline))

    def _begin_download(self) -> None:
        current = self.session.phase(PhaseName.DOWNLOAD).phase
        if current is PhaseState.STARTED:
            return
        if current in TERMINAL_PHASE_STATES:
            self._set_phase(PhaseName.DOWNLOAD, PhaseState.PENDING)
        self._set_phase(PhaseName.DOWNLOAD, PhaseState.STARTED, "Downloading")

    def _honour_shutdown(self) -> bool:
        if not self._shutdown_signaled:
            return False
        self._on_shutdown_requested()
        self._notify()
        return True

    async def _abort(self, phase: PhaseName, exc: ShareError, label: str) -> NoReturn:
        kind = exc.kind or _DEFAULT_FATAL_KINDS[phase]
        self._set_phase(phase, PhaseState.ERRORED, label)
        logger.error("%s: %s", label, exc)
        await self.close()
        raise SessionAbortedError(kind, str(exc)) from exc

    async def _close_networking(self) -> None:
        tunnel, self._tunnel = self._tunnel, None
        server, self._server = self._server, None
        try:
            if tunnel is not None:
                await tunnel.close()
        finally:
            if server is not None:
                await server.close()

    def _set_phase(self, name: PhaseName, phase: PhaseState, label: str | None = None) -> None:
        self.session.phases[name] = self.session.phase(name).advance(name, phase, label)
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.session)
            except Exception:
                logger.exception("Session listener failed.")


__all__ = ["SessionController", "SessionListener"]
