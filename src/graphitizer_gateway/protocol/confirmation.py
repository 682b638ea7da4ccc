"""Write confirmation for graphitizer commands.

The device never acknowledges a command. A write counts as accepted only
once a later snapshot shows its effect:

- level parameters: the field equals the written value
- toggles: the pump state field equals 1 (on) or 0 (off)
- thresholds: change too slowly to wait for; one fresh snapshot is returned

Every attempt is bounded by the engine's timeout and optional poll limit.
With both set to None the engine polls until the device complies or the
task is cancelled.
"""

import asyncio
import logging
from dataclasses import dataclass

from graphitizer_gateway.core.exceptions import ChannelError, DecodeError, ValidationError
from graphitizer_gateway.protocol.codec import decode_frame, encode_command
from graphitizer_gateway.protocol.constants import (
    CONFIRM_TIMEOUT,
    LEVEL_POLL_DELAY,
    SAMPLE_RETRY_DELAY,
    SETTLE_DELAY,
    SNAPSHOT_COMMAND,
    TOGGLE_POLL_DELAY,
)
from graphitizer_gateway.protocol.frames import Frame
from graphitizer_gateway.protocol.registry import (
    DEFAULT_REGISTRY,
    CommandRequest,
    ConfirmationPolicy,
    ParameterRegistry,
)
from graphitizer_gateway.serial.gate import ChannelGate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Confirmed:
    """The device state shows the command took effect."""

    frame: Frame


@dataclass(frozen=True)
class Rejected:
    """The request was invalid and nothing was sent."""

    reason: str


@dataclass(frozen=True)
class TimedOut:
    """The budget ran out before the device reached the expected state."""

    attempts: int
    last_frame: Frame | None = None


ConfirmationOutcome = Confirmed | Rejected | TimedOut


class ConfirmationEngine:
    """Sends commands through the gate and polls snapshots until they are confirmed."""

    def __init__(
        self,
        gate: ChannelGate,
        registry: ParameterRegistry = DEFAULT_REGISTRY,
        settle_delay: float = SETTLE_DELAY,
        level_poll_delay: float = LEVEL_POLL_DELAY,
        toggle_poll_delay: float = TOGGLE_POLL_DELAY,
        sample_retry_delay: float = SAMPLE_RETRY_DELAY,
        timeout: float | None = CONFIRM_TIMEOUT,
        max_polls: int | None = None,
    ):
        """Initialize confirmation engine.

        Args:
            gate: Channel gate used for every command and snapshot.
            registry: Parameter registry.
            settle_delay: Seconds to wait after sending before the first poll.
            level_poll_delay: Seconds between polls for level parameters.
            toggle_poll_delay: Seconds between polls for toggles.
            sample_retry_delay: Seconds to wait after an unusable snapshot.
            timeout: Overall seconds allowed per request, None for no limit.
            max_polls: Maximum snapshots compared per request, None for no limit.
        """
        self._gate = gate
        self._registry = registry
        self._settle_delay = settle_delay
        self._poll_delays = {
            ConfirmationPolicy.MATCH_VALUE: level_poll_delay,
            ConfirmationPolicy.MATCH_STATE: toggle_poll_delay,
        }
        self._sample_retry_delay = sample_retry_delay
        self._timeout = timeout
        self._max_polls = max_polls

    def _deadline(self) -> float | None:
        if self._timeout is None:
            return None
        return asyncio.get_running_loop().time() + self._timeout

    @staticmethod
    def _expired(deadline: float | None) -> bool:
        return deadline is not None and asyncio.get_running_loop().time() >= deadline

    async def sample(self, deadline: float | None = None) -> Frame | None:
        """Read snapshots until one decodes.

        Decode and channel errors are treated as transient.

        Args:
            deadline: Event loop time after which to give up, None for never.

        Returns:
            The first valid Frame, or None if the deadline passed.
        """
        while not self._expired(deadline):
            try:
                line = await self._gate.round_trip(SNAPSHOT_COMMAND)
                return decode_frame(line, self._registry)
            except DecodeError as e:
                logger.debug("Invalid snapshot, reading again: %s", e)
            except ChannelError as e:
                logger.warning("Channel error while sampling, retrying: %s", e)

            await asyncio.sleep(self._sample_retry_delay)

        return None

    async def read_snapshot(self) -> Frame | None:
        """Get one fresh snapshot within the engine's timeout."""
        return await self.sample(self._deadline())

    async def _send(self, command: str, deadline: float | None) -> bool:
        while True:
            try:
                await self._gate.send(command)
                return True
            except ChannelError as e:
                if self._expired(deadline):
                    logger.error("Giving up on %s: %s", command, e)
                    return False
                logger.warning("Could not send %s, retrying: %s", command, e)

            await asyncio.sleep(self._sample_retry_delay)

    async def confirm(self, name: str, raw_value: str | None = None) -> ConfirmationOutcome:
        """Validate, send and confirm a write given as raw strings.

        Returns:
            Rejected if the request is invalid (nothing is sent), otherwise
            the result of execute().
        """
        try:
            request = self._registry.validate(name, raw_value)
        except ValidationError as e:
            logger.info("Rejected request %s=%r: %s", name, raw_value, e)
            return Rejected(str(e))

        return await self.execute(request)

    async def execute(self, request: CommandRequest) -> ConfirmationOutcome:
        """Send an already validated request and wait for its effect.

        Args:
            request: Request returned by ParameterRegistry.validate().

        Returns:
            Confirmed with the matching snapshot, or TimedOut.
        """
        spec = self._registry.spec(request.name)
        deadline = self._deadline()
        command = encode_command(request.name, request.value)

        if not await self._send(command, deadline):
            return TimedOut(attempts=0)

        await asyncio.sleep(self._settle_delay)

        if spec.policy is ConfirmationPolicy.SNAPSHOT:
            frame = await self.sample(deadline)
            if frame is None:
                return TimedOut(attempts=0)
            logger.info("Valid response received for %s", request.name)
            return Confirmed(frame)

        if spec.policy is ConfirmationPolicy.MATCH_VALUE:
            field, expected = request.name, request.value
        else:
            field, expected = spec.state_field, spec.state_value

        delay = self._poll_delays[spec.policy]
        attempts = 0
        last_frame: Frame | None = None

        while self._max_polls is None or attempts < self._max_polls:
            frame = await self.sample(deadline)
            if frame is None:
                break

            attempts += 1
            last_frame = frame
            observed = frame.get(field)

            if observed == expected:
                logger.info("Valid response received for %s after %d poll(s)", request.name, attempts)
                return Confirmed(frame)

            logger.info("Response FAILED for %s: %s=%s, expected %s. Reading again..", request.name, field, observed, expected)
            await asyncio.sleep(delay)

        logger.warning("Confirmation of %s timed out after %d poll(s)", request.name, attempts)
        return TimedOut(attempts=attempts, last_frame=last_frame)
