"""
Demo application for auval.
"""
