"""
backend.analytics — Decision Pipeline for Aquaculture Water Monitoring
=======================================================================

This package turns a rolling stream of pond sensor readings into
threshold alerts, feeding and aerator recommendations, and a short
forecast for the farm dashboard.

Architecture:
    Pond sensors → Cloud backend → Python decision service
                                          ↓
                                  Decision Pipeline:
                                    1. History window (last N readings)
                                    2. Trend / variance kernel
                                       (numpy-accelerated, portable fallback)
                                    3. Threshold alerts
                                    4. Environment score
                                    5. Feeding + aerator recommendations
                                    6. DO / pH / turbidity forecast
                                          ↓
                                  MQTT → persistence & dashboard

Modules:
    config        — Threshold defaults, algorithm constants, runtime switches
    thresholds    — Threshold table loading and validation
    records       — Reading and decision record types
    windowing     — Bounded reading history
    stat_kernel   — Portable statistics and scoring kernel
    native_kernel — numpy-accelerated kernel
    acceleration  — Async kernel loader and dispatcher
    alerts        — Threshold alert engine
    scoring       — Environment quality score
    feeding       — Feed-rate recommendation and efficiency metrics
    aerator       — Aerator on/off recommendation
    forecast      — Short-horizon forecast
    pipeline      — End-to-end decision cycle
    sink          — Record sinks (in-memory, MQTT)
    service       — Flask microservice
    utils         — Shared helpers and logging setup
"""

__version__ = "1.0.0"
__author__ = "Aquaculture Monitoring Team"
