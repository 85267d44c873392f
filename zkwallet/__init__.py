# zkwallet/__init__.py
"""
zkwallet — command-line wallet for a UTXO ledger whose transfers are authorized
by zero-knowledge proofs instead of visible signatures.

The secret never leaves the machine except as input to the local proving program.
"""

__version__ = "0.1.0-dev"
