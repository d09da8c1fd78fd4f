from .base import BaseConditionalIndependenceTest
from .chooser import IndTestChooser, make_ci_estimator
from .facts import IndependenceFacts, IndependenceFactsOracle
from .fisher_z_test import FisherZCITest
from .g_test import GSquareCITest
from .oracle import Oracle
from .oracle_adapter import IndependenceOracle, IndependenceResult
from .utils import dummy_sample
