# Copyright 2024 The fsakit contributors. All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
#    1. Redistributions of source code must retain the above copyright notice,
#       this list of conditions and the following disclaimer.
#
#    2. Redistributions in binary form must reproduce the above copyright
#       notice, this list of conditions and the following disclaimer in the
#       documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE FSAKIT CONTRIBUTORS ``AS IS'' AND ANY EXPRESS OR
# IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED WARRANTIES OF
# MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO
# EVENT SHALL THE FSAKIT CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT,
# INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT
# LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA,
# OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING
# NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
#
# The views and conclusions contained in the software and documentation are
# those of the authors and should not be interpreted as representing official
# policies, either expressed or implied, of the fsakit contributors.


from loguru import logger

from fsakit.automata.fsa import DFA, EPSILON, FSA, NFA, InvalidAutomatonError, Marker
from fsakit.automata.passive import Sample, SampleConflictError, build_pta
from fsakit.automata.subset import (
    determinize,
    equivalent,
    find_counterexample,
    renumber_dfa,
)

__all__ = [
    "DFA",
    "EPSILON",
    "FSA",
    "InvalidAutomatonError",
    "Marker",
    "NFA",
    "Sample",
    "SampleConflictError",
    "build_pta",
    "determinize",
    "equivalent",
    "find_counterexample",
    "renumber_dfa",
]

# Library code stays silent unless the application opts in with
# logger.enable("fsakit")
logger.disable("fsakit")
