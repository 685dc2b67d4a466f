"""
Autosign - Certificate Signing Request Policy Engine

Decides whether a certificate signing request should be signed automatically.
Plugs into a certificate authority as an autosign policy executable.

Architecture:
- Each module is self-contained with clear interfaces
- Validators are registered by name and run in a configured order
- The first validator to approve a request wins
- The only shared state is the one-time token journal

Modules:
- token: Signed, time-limited token encoding and verification
- journal: Replay protection for one-time tokens
- validators: Validation strategies and the chain that runs them
- decoder: Certificate signing request decoding
"""

__version__ = "1.0.0"
