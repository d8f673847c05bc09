#!/usr/bin/env python3
"""
Mail Decoding CLI
Parses stored raw messages and prints each decoded record with its verification code
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.modules.email_parser import EmailParser
from src.modules.preview import generate_preview
from src.modules.verification_extractor import extract_verification_code
from src.utils.config import Config, ConfigurationError
from src.utils.logging_formatter import setup_logging
from src.utils.metrics import Metrics
from src.utils.sanitization import mask_code, sanitize_for_logging
from src.utils.security_validators import check_message_size, sanitize_filename


class MailDecodeRunner:
    """Decodes raw message files one by one"""

    def __init__(self, config: Config):
        """
        Initialize runner

        Args:
            config: Loaded configuration
        """
        self.config = config
        self.parser = EmailParser(config.parser)
        self.metrics = Metrics()
        self.logger = logging.getLogger("MailDecodeRunner")

    def process_file(self, path: Path, save_dir: Optional[Path] = None) -> Optional[Dict[str, Any]]:
        """
        Parse one raw message file

        Args:
            path: Path to a stored raw message (.eml)
            save_dir: Directory to write attachments to, if any

        Returns:
            Summary dict, or None if the file was unreadable or too large
        """
        try:
            raw = path.read_bytes()
        except OSError as e:
            self.logger.error(f"Cannot read {sanitize_for_logging(str(path))}: {e}")
            self.metrics.record_error("read_failed")
            return None

        if not check_message_size(raw, self.config.parser.max_email_size):
            self.metrics.record_error("too_large")
            return None

        started = time.perf_counter()
        parsed = self.parser.parse_email(raw)
        code = extract_verification_code(parsed.subject, parsed.text, parsed.html)
        elapsed_ms = (time.perf_counter() - started) * 1000
        self.metrics.record_processing_time(elapsed_ms)
        self.metrics.record_message(len(parsed.attachments), code is not None)

        self.logger.info(
            f"Decoded {sanitize_for_logging(path.name)}",
            extra={"extra_fields": {
                "file": str(path),
                "bytes": len(raw),
                "attachments": len(parsed.attachments),
                "elapsed_ms": round(elapsed_ms, 2),
                "extracted": code is not None,
            }},
        )

        if code:
            self.logger.info(f"Verification code found: {mask_code(code)}")

        if save_dir is not None:
            self._save_attachments(parsed.attachments, save_dir)

        return {
            "file": str(path),
            "from": parsed.sender,
            "to": parsed.to,
            "subject": parsed.subject,
            "preview": generate_preview(parsed.text, parsed.html),
            "verification_code": code,
            "attachments": [
                {
                    "filename": att.filename,
                    "contentType": att.content_type,
                    "size": att.size,
                    "sha256": att.sha256,
                    "storage_key": att.storage_key,
                }
                for att in parsed.attachments
            ],
        }

    def _save_attachments(self, attachments, save_dir: Path) -> None:
        """Write attachment bytes under sanitized, de-duplicated filenames"""
        save_dir.mkdir(parents=True, exist_ok=True)
        for att in attachments:
            target = save_dir / sanitize_filename(att.filename)
            counter = 1
            while target.exists():
                target = save_dir / f"{counter}_{sanitize_filename(att.filename)}"
                counter += 1
            target.write_bytes(att.content)
            self.logger.debug(f"Saved attachment to {sanitize_for_logging(str(target))}")

    def run(self, paths: List[Path], save_dir: Optional[Path] = None) -> int:
        """Process every path, print one JSON document per message, return an exit code"""
        failures = 0
        for path in paths:
            summary = self.process_file(path, save_dir)
            if summary is None:
                failures += 1
                continue
            print(json.dumps(summary, ensure_ascii=False, indent=2))

        self.logger.info(f"Parsed {self.metrics.messages_parsed} message(s)")
        self.logger.debug(f"Run summary: {self.metrics.get_summary()}")
        return 1 if failures else 0


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mailparse",
        description="Decode raw RFC 5322 messages and extract verification codes",
    )
    parser.add_argument("files", nargs="+", type=Path, help="Raw message files (.eml)")
    parser.add_argument("--env-file", default=".env", help="Configuration file (default: .env)")
    parser.add_argument("--save-attachments", type=Path, metavar="DIR",
                        help="Write decoded attachments to DIR")
    parser.add_argument("--log-level", help="Override LOG_LEVEL")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_arg_parser().parse_args(argv)

    try:
        config = Config(args.env_file)
        config.validate()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(args.log_level or config.system.log_level, config.system.log_format,
                  stream=sys.stderr)

    return MailDecodeRunner(config).run(args.files, args.save_attachments)


if __name__ == "__main__":
    sys.exit(main())
