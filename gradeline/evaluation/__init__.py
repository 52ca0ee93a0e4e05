# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
gradeline evaluation package.

Takes submitted programs and decides, for each one, whether it compiles
and produces the expected output for every test case of its task.

Subsystems:
  - discovery: finding submissions and reading their headers
  - compiler: isolated build directories and the compile harness
  - catalog: resolving test input/expected-output pairs
  - runner: executing tests, evaluating and scheduling submissions
  - reporting: writing records, text reports and leaderboards
"""
