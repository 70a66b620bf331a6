from .build import SplitPlan, choose_split, grow

__all__ = ["SplitPlan", "choose_split", "grow"]
