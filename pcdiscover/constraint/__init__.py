from .meek import MeekRules
from .pcalg import PC
from .skeleton import LearnSkeleton
