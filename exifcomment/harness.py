# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
UserComment verification harness

Runs one verification: encode the comment, store it in a container,
persist the file, re-read it, and classify the bytes that came back
against the reference candidates.

    config = VerificationConfig(
        input_path='image.webp',
        output_path='output.webp',
        comment_text='Hello, World! こんにちわ世界',
        byte_order_policy=ByteOrder.LE,
    )
    outcome = run_verification(config)
    outcome.result.status, outcome.result.label, outcome.result.conforms

Every run returns a VerificationOutcome. Codec, container and file
system errors are captured in outcome.error rather than raised, so the
caller decides what a mismatch or a failure means.

Copyright 2025 DNAi inc.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple

from exifcomment import container as exif_container
from exifcomment.decoder import UserCommentRecord, decode
from exifcomment.encoder import encode
from exifcomment.exceptions import ExifCommentError
from exifcomment.exif_parser import EXIF_IFD
from exifcomment.oracle import EncodingCandidate, candidates
from exifcomment.reporter import ComparisonResult, compare
from exifcomment.tag_layout import PREFIX_LENGTH, USER_COMMENT_TAG_ID, ByteOrder, CharacterCode

logger = logging.getLogger(__name__)

Producer = Callable[[str], bytes]


@dataclass(frozen=True)
class VerificationConfig:
    """
    Configuration for one verification run.

    Fields:
      input_path           -- image to start from; None starts from an empty EXIF file
      output_path          -- where the modified file is written
      comment_text         -- UserComment text to write and verify
      byte_order_policy    -- byte order the default producer uses for UTF-16 units
      container_byte_order -- TIFF byte order of a new container (input_path None only)
      extended_candidates  -- also compare against BOM and UTF-8 variants
    """
    input_path: Optional[Path]
    output_path: Path
    comment_text: str
    byte_order_policy: ByteOrder = ByteOrder.BE
    container_byte_order: ByteOrder = ByteOrder.LE
    extended_candidates: bool = False

    def __post_init__(self):
        if self.output_path is None:
            raise ValueError("output_path is required")
        if not isinstance(self.comment_text, str):
            raise ValueError("comment_text must be a string")
        if not isinstance(self.byte_order_policy, ByteOrder):
            raise ValueError("byte_order_policy must be a ByteOrder")
        if not isinstance(self.container_byte_order, ByteOrder):
            raise ValueError("container_byte_order must be a ByteOrder")
        if self.input_path is not None:
            object.__setattr__(self, 'input_path', Path(self.input_path))
        object.__setattr__(self, 'output_path', Path(self.output_path))


@dataclass(frozen=True)
class VerificationOutcome:
    """
    Everything one verification run produced.

    actual is None when the reloaded file had no UserComment. error is
    set when the run stopped early; result is then None.
    """
    config: VerificationConfig
    candidates: Tuple[EncodingCandidate, ...] = ()
    actual: Optional[bytes] = None
    record: Optional[UserCommentRecord] = None
    container_byte_order: Optional[ByteOrder] = None
    result: Optional[ComparisonResult] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def default_producer(byte_order: ByteOrder) -> Producer:
    """Producer that encodes with this package's encoder under byte_order."""
    def produce(text: str) -> bytes:
        return encode(text, CharacterCode.UNICODE, byte_order)
    return produce


def find_user_comment(records) -> Optional[bytes]:
    """Return the first UserComment value in the Exif sub-IFD records."""
    for record in records:
        if record.ifd == EXIF_IFD and record.tag_id == USER_COMMENT_TAG_ID:
            return record.value
    return None


def run_verification(
    config: VerificationConfig,
    producer: Optional[Producer] = None
) -> VerificationOutcome:
    """
    Run encode -> persist -> reload -> decode/compare once.

    Args:
        config: Verification configuration
        producer: Function turning the comment text into raw UserComment
                  bytes; defaults to this package's encoder under
                  config.byte_order_policy

    Returns:
        VerificationOutcome; never raises for codec, container or OS errors
    """
    if producer is None:
        producer = default_producer(config.byte_order_policy)

    expected: Tuple[EncodingCandidate, ...] = ()
    try:
        expected = candidates(config.comment_text, extended=config.extended_candidates)

        if config.input_path is None:
            logger.info("Creating empty EXIF container (%s)", config.container_byte_order.name)
            image = exif_container.ExifContainer.new(config.container_byte_order)
        else:
            logger.info("Loading %s", config.input_path)
            image = exif_container.load(config.input_path)

        data = producer(config.comment_text)
        logger.info("Setting UserComment (%d bytes)", len(data))
        image.set_tag_bytes(USER_COMMENT_TAG_ID, data)

        exif_container.persist(image, config.output_path)
        logger.info("Saved %s", config.output_path)

        actual = find_user_comment(exif_container.reload(config.output_path))
        byte_order = exif_container.read_byte_order(config.output_path)
    except (ExifCommentError, OSError) as e:
        logger.error("Verification stopped: %s", e)
        return VerificationOutcome(config=config, candidates=expected, error=e)

    if actual is None:
        logger.warning("%s has no UserComment after reload", config.output_path)

    record = None
    if actual is not None and len(actual) >= PREFIX_LENGTH:
        record = decode(actual)

    result = compare(actual or b'', expected, container_byte_order=byte_order)
    logger.info(
        "UserComment %s%s",
        result.status.value,
        f" ({result.label})" if result.label else "",
    )
    if result.conforms is False:
        logger.warning(
            "UserComment does not follow the container byte order %s (expected %s)",
            byte_order.name if byte_order else None,
            result.expected_label,
        )

    return VerificationOutcome(
        config=config,
        candidates=expected,
        actual=actual,
        record=record,
        container_byte_order=byte_order,
        result=result,
    )
