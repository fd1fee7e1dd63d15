"""
Asset Certification Service - blockchain-anchored certificates for owned assets.

Issues tamper-evident, ledger-anchored certificates for identity samples
(face and voice) and content artifacts (clips, transcripts, blog posts),
and keeps each asset's certification status consistent between a fast
database and a slow, failure-prone ledger.

Operating Rules:
- The persisted certification status is the only arbiter of an in-flight mint
- At most one ledger submission per asset at any time
- Every failure is classified; no asset is left minting after a request returns
- Minted is terminal; retries are always caller-initiated
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
