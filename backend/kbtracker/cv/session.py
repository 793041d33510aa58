"""
Session bookkeeping for classified reps.

Reps are grouped into sets. A set opens with its first rep and is closed
explicitly by the caller; the summary mirrors the per-set payload athletes
export after a session (hand, rep count, average peak velocity, raw peaks).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import numpy as np

from kbtracker.cv.kinematic_classifier import ClassifiedRep, MovementType
from kbtracker.cv.landmarks import Side

logger = logging.getLogger(__name__)


@dataclass
class RepSet:
    """One set of reps performed with one hand."""
    set_order: int
    hand: Optional[Side] = None
    reps: List[ClassifiedRep] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    ended_at: Optional[datetime] = None
    
    @property
    def peaks(self) -> List[float]:
        return [r.peak_velocity for r in self.reps]
    
    @property
    def avg_velocity(self) -> float:
        return float(np.mean(self.peaks)) if self.reps else 0.0
    
    @property
    def best_velocity(self) -> float:
        return float(np.max(self.peaks)) if self.reps else 0.0
    
    @property
    def velocity_loss_percent(self) -> float:
        """Drop from the best rep to the last rep, in percent."""
        best = self.best_velocity
        if best <= 0:
            return 0.0
        return (best - self.reps[-1].peak_velocity) / best * 100.0
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "set_order": self.set_order,
            "hand": self.hand.value if self.hand else None,
            "rep_count": len(self.reps),
            "peak_velocity_avg": round(self.avg_velocity, 2),
            "peak_velocity_best": round(self.best_velocity, 2),
            "velocity_loss_percent": round(self.velocity_loss_percent, 1),
            "movements": [r.movement.value for r in self.reps],
            "raw_peaks": self.peaks,
        }


class SessionAggregator:
    """
    Accumulates classified reps into per-type counts and peak records.
    
    Counts only grow; ``reset`` is the only way to bring them back to zero.
    """
    
    def __init__(self):
        self.reset()
    
    def reset(self):
        self.reps: List[ClassifiedRep] = []
        self.counts: Dict[MovementType, int] = {m: 0 for m in MovementType}
        self.peaks: Dict[MovementType, float] = {m: 0.0 for m in MovementType}
        self.session_peak = 0.0
        self.sets: List[RepSet] = []
        self.current_set: Optional[RepSet] = None
        self.started_at = datetime.now(timezone.utc)
    
    @property
    def total_reps(self) -> int:
        return len(self.reps)
    
    def add_rep(self, rep: ClassifiedRep):
        """Take ownership of a rep emitted by the state machine."""
        self.reps.append(rep)
        self.counts[rep.movement] += 1
        self.peaks[rep.movement] = max(self.peaks[rep.movement], rep.peak_velocity)
        self.session_peak = max(self.session_peak, rep.peak_velocity)
        
        if self.current_set is None:
            self.current_set = RepSet(set_order=len(self.sets) + 1, hand=rep.side)
        self.current_set.reps.append(rep)
        
        logger.info(f"Rep #{self.total_reps}: {rep.movement.value} "
                    f"{rep.peak_velocity:.2f} m/s")
    
    def consume(self, result) -> Optional[RepSet]:
        """
        Take one engine FrameResult: store its rep, and close the open set
        when the frame carries the set-end gesture.
        
        Returns:
            The set closed by this frame, if any
        """
        if result.rep is not None:
            self.add_rep(result.rep)
        if result.set_ended:
            return self.close_set()
        return None
    
    def close_set(self) -> Optional[RepSet]:
        """Finish the open set. Returns None when no set is open."""
        if self.current_set is None:
            return None
        
        finished = self.current_set
        finished.ended_at = datetime.now(timezone.utc)
        self.sets.append(finished)
        self.current_set = None
        logger.info(f"Set {finished.set_order} closed: {len(finished.reps)} reps, "
                    f"avg {finished.avg_velocity:.2f} m/s")
        return finished
    
    def summary(self) -> Dict[str, Any]:
        """Session summary payload."""
        all_sets = list(self.sets)
        if self.current_set is not None:
            all_sets.append(self.current_set)
        
        peaks = [r.peak_velocity for r in self.reps]
        return {
            "session_date": self.started_at.isoformat(),
            "total_reps": self.total_reps,
            "counts": {m.value: n for m, n in self.counts.items()},
            "peak_velocity": {m.value: round(v, 2) for m, v in self.peaks.items()},
            "session_peak_velocity": round(self.session_peak, 2),
            "session_avg_velocity": round(float(np.mean(peaks)), 2) if peaks else 0.0,
            "sets": [s.to_dict() for s in all_sets],
        }
