"""Recurring health-event scheduling engine.

This package contains the business logic and domain models for periodic
service cycles and lifecycle (multi-dose) programs, isolated from storage
and transport so every computation is a pure function of its inputs.
"""
