"""
PAN Audit

Finds, validates, classifies and redacts payment card numbers in trees of
text files:

- card_detector: Candidate extraction, Luhn validation and brand rules
- masking: Masked PANs and best-effort line redaction
- file_scanner: Per-file scanning and scan-target enumeration
- scan_orchestrator: Concurrent scan with a lock-guarded result store
- summary: Compliance summary and risk buckets
- reporting: Text, JSON and CSV reports
"""

from .card_detector import (
    CARD_BRAND_RULES,
    CardBrandRule,
    CardMatch,
    extract_candidates,
    identify_card_brand,
    luhn_checksum,
    scan_line,
    scan_text,
)

from .masking import (
    RedactedLine,
    masked_line,
    masked_pan,
    redact_line,
    redact_lines,
)

from .file_scanner import (
    FileScanResult,
    ScanTargets,
    SkipReason,
    SkipRecord,
    collect_targets,
    scan_file,
)

from .summary import (
    RiskLevel,
    ScanSummary,
    risk_bucket,
    summarize,
)

from .config import (
    ScanConfig,
    ScanConfigError,
    load_config,
)

from .scan_orchestrator import (
    ScanOrchestrator,
    ScanResultStore,
    scan,
)

__version__ = "1.0.0"

__all__ = [
    # Detection
    'CARD_BRAND_RULES',
    'CardBrandRule',
    'CardMatch',
    'extract_candidates',
    'identify_card_brand',
    'luhn_checksum',
    'scan_line',
    'scan_text',

    # Masking
    'RedactedLine',
    'masked_line',
    'masked_pan',
    'redact_line',
    'redact_lines',

    # File Scanning
    'FileScanResult',
    'ScanTargets',
    'SkipReason',
    'SkipRecord',
    'collect_targets',
    'scan_file',

    # Summary
    'RiskLevel',
    'ScanSummary',
    'risk_bucket',
    'summarize',

    # Configuration
    'ScanConfig',
    'ScanConfigError',
    'load_config',

    # Orchestration
    'ScanOrchestrator',
    'ScanResultStore',
    'scan',
]
