"""Screens of the WalkCity app, each built on the shared interaction components."""

from __future__ import annotations

from walkcity_flows.screens.issue_report import IssueReportFlow, PhotoAttachment
from walkcity_flows.screens.route_recording import RouteRecordingFlow
from walkcity_flows.screens.walkability_map import MapQuery, SimulatedMapSource, WalkabilityMapScreen

__all__ = [
    "IssueReportFlow",
    "MapQuery",
    "PhotoAttachment",
    "RouteRecordingFlow",
    "SimulatedMapSource",
    "WalkabilityMapScreen",
]
