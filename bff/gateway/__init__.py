"""
Request gateway (BFF proxy).

Design goals:
- The raw session token never reaches page script.
- Cookie state changes only on successful login/signup/logout.
- No state between calls besides configuration.
"""
