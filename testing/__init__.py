"""Tests for Touchbase. Run with: pytest"""
