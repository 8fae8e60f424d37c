"""
Content Flow

A content submission service that:
1. Accepts text submissions over HTTP
2. Validates them against length and language rules
3. Analyzes them with Claude AI
4. Generates publishing recommendations
5. Lets users comment, vote and request AI rewrites
"""

__version__ = "0.1.0"
