"""
Calc Desk: calculation engines and HTTP adapters for the calculator suite.
"""
