# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
gradeline: batch grader for stdin/stdout programming submissions.
"""

__version__ = "0.1.0"
