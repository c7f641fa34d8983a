# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Applicability topic analyzers.
"""

from accessibility_conformance.applicability.analyzers.base_analyzer import BaseTopicAnalyzer
from accessibility_conformance.applicability.analyzers.multimedia import MultimediaAnalyzer
from accessibility_conformance.applicability.analyzers.audio_control import AudioControlAnalyzer
from accessibility_conformance.applicability.analyzers.forms import FormsAnalyzer
from accessibility_conformance.applicability.analyzers.bypass_blocks import BypassBlocksAnalyzer
from accessibility_conformance.applicability.analyzers.change_on_request import (
    ChangeOnRequestAnalyzer,
)

TOPIC_ANALYZERS = (
    MultimediaAnalyzer,
    AudioControlAnalyzer,
    FormsAnalyzer,
    BypassBlocksAnalyzer,
    ChangeOnRequestAnalyzer,
)

__all__ = [
    "BaseTopicAnalyzer",
    "MultimediaAnalyzer",
    "AudioControlAnalyzer",
    "FormsAnalyzer",
    "BypassBlocksAnalyzer",
    "ChangeOnRequestAnalyzer",
    "TOPIC_ANALYZERS",
]
