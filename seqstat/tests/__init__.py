# This file is part of Seqstat.
#
# Licensed under MIT License.

import os
DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.realpath(__file__))), 'data')
