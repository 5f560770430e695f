"""
fairvrf - Verifiable randomness for real-money PvP matches

Provides:
- ECVRF proofs over Edwards25519 (prove, verify, keygen)
- Proportional weighted winner selection and shuffles
- Request coordination with a fairness timing window
- Match outcome resolution with audit hashes
"""

__version__ = "0.1.0"
