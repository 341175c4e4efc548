"""Utilities for running acme-account tests"""
