"""Strategy chain resolver."""

import asyncio
import logging
import time
from typing import Mapping, Optional

from ..errors import ValidationUnknown
from ..extractor.base import ExtractError, ExtractionRequest, ExtractOptions, Extractor, MediaCandidate
from ..platforms.models import PlatformProfile
from ..storage import TempAssetStore
from ..validator import CandidateValidator, Verdict
from .models import ChainOutcome, ChainState, StrategyAttempt


logger = logging.getLogger(__name__)


class ChainResolver:
    """Runs a platform's strategies in order and stops at the first usable one.

    Strategies run strictly one after another. A candidate counts as usable
    when the validator says ``valid`` or ``unknown``; an ``invalid`` verdict
    is a failure like any other and advances the chain.
    """

    def __init__(
        self,
        extractors: Mapping[str, Extractor],
        validator: Optional[CandidateValidator] = None,
        store: Optional[TempAssetStore] = None,
        extract_timeout: float = 45.0,
    ):
        self.extractors = dict(extractors)
        self.validator = validator or CandidateValidator()
        self.store = store
        self.extract_timeout = extract_timeout

    async def resolve(
        self,
        request: ExtractionRequest,
        profile: PlatformProfile,
        options: ExtractOptions,
    ) -> ChainOutcome:
        """
        Run the chain for one request.

        Args:
            request: Extraction request (attempt_index starts at 0)
            profile: Platform profile holding the chain
            options: Options passed to every strategy

        Returns:
            ChainOutcome in the SUCCEEDED or EXHAUSTED state
        """
        outcome = ChainOutcome(state=ChainState.PENDING, platform=request.platform)

        for strategy in profile.chain:
            outcome.state = ChainState.TRYING
            attempt = StrategyAttempt(index=request.attempt_index, strategy=strategy)
            started = time.monotonic()

            candidate = await self._run(strategy, request, options, attempt)
            if candidate is not None:
                validation = await self.validator.validate(candidate, options.headers)
                attempt.verdict = validation.verdict

                if validation.verdict == Verdict.INVALID:
                    attempt.failure_kind = "Invalid"
                    attempt.message = validation.reason
                    if candidate.local_asset is not None and self.store is not None:
                        self.store.release(candidate.local_asset)
                else:
                    attempt.elapsed_ms = (time.monotonic() - started) * 1000
                    outcome.attempts.append(attempt)
                    self._log(request, attempt)

                    if validation.verdict == Verdict.UNKNOWN:
                        outcome.notices.append(ValidationUnknown(candidate.raw_url, validation.reason))

                    outcome.state = ChainState.SUCCEEDED
                    outcome.candidate = candidate
                    outcome.validation = validation
                    return outcome

            attempt.elapsed_ms = (time.monotonic() - started) * 1000
            outcome.attempts.append(attempt)
            self._log(request, attempt)
            request = request.advance()

        outcome.state = ChainState.EXHAUSTED
        logger.warning(
            "[%s] All %d strategies failed for %s",
            request.request_id[:8], len(outcome.attempts), request.source_url,
        )
        return outcome

    async def _run(
        self,
        strategy: str,
        request: ExtractionRequest,
        options: ExtractOptions,
        attempt: StrategyAttempt,
    ) -> Optional[MediaCandidate]:
        """Run one strategy, recording any failure on the attempt."""
        extractor = self.extractors.get(strategy)
        if extractor is None:
            attempt.failure_kind = "UnsupportedShape"
            attempt.message = f"No extractor registered for {strategy!r}"
            return None

        try:
            return await asyncio.wait_for(
                extractor.attempt(request.source_url, request.platform, options),
                timeout=self.extract_timeout,
            )
        except asyncio.TimeoutError:
            attempt.failure_kind = "Timeout"
            attempt.message = f"Timed out after {self.extract_timeout}s"
        except ExtractError as e:
            attempt.failure_kind = e.kind
            attempt.message = e.message
        except Exception as e:
            logger.exception("[%s] %s raised unexpectedly", request.request_id[:8], strategy)
            attempt.failure_kind = "UpstreamError"
            attempt.message = f"Unexpected {type(e).__name__}: {str(e)[:200]}"
        return None

    def _log(self, request: ExtractionRequest, attempt: StrategyAttempt) -> None:
        if attempt.succeeded:
            logger.info(
                "[%s] %s #%d succeeded (%s, %.0f ms)",
                request.request_id[:8], attempt.strategy, attempt.index,
                attempt.verdict.value if attempt.verdict else "-", attempt.elapsed_ms,
            )
        else:
            logger.info(
                "[%s] %s #%d failed: %s %s",
                request.request_id[:8], attempt.strategy, attempt.index,
                attempt.failure_kind, attempt.message,
            )
