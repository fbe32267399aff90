"""
Threshold scoring of samples.

Each subsystem has a fixed rule set. Weights are calibrated so that one
clearly bad condition costs roughly 2-4 points in any subsystem, which makes
the merged ranking across subsystems meaningful. A rule whose input column is
absent from the sample is not applied. A total of 0 yields no candidate.
"""

import logging
from typing import Callable, Dict, Optional

from ..models.config import Thresholds
from ..models.telemetry import Candidate, Sample, Subsystem

logger = logging.getLogger(__name__)


def _fmt(value: Optional[float], spec: str) -> str:
    return "n/a" if value is None else format(value, spec)


def _above(value: Optional[float], threshold: float) -> bool:
    return value is not None and value > threshold


def _at_least(value: Optional[float], threshold: float) -> bool:
    return value is not None and value >= threshold


class AnomalyScorer:
    """
    Scores samples against configured thresholds.

    Per-sample rules are strict (`>`) except the disk spike rules and the
    network load rule, which are inclusive (`>=`).
    """

    def __init__(self, thresholds: Optional[Thresholds] = None):
        self.thresholds = thresholds or Thresholds()
        self._dispatch: Dict[Subsystem, Callable[[Sample], Optional[Candidate]]] = {
            Subsystem.CPU: self.score_cpu,
            Subsystem.MEMORY: self.score_memory,
            Subsystem.DISK: self.score_disk,
            Subsystem.NET_ERROR: self.score_net_error,
            Subsystem.SOCKET: self.score_socket,
            Subsystem.TCP: self.score_tcp,
            Subsystem.IP: self.score_ip,
        }

    def score(self, sample: Sample) -> Optional[Candidate]:
        """
        Score a sample with the rule set of its subsystem.

        Network load is not handled here because it needs the link speed
        context; see score_net_load.
        """
        scorer = self._dispatch.get(sample.subsystem)
        if scorer is None:
            raise ValueError(f"No per-sample rules for subsystem {sample.subsystem.value}")
        return scorer(sample)

    def _candidate(self, score: int, sample: Sample, description: str) -> Optional[Candidate]:
        if score <= 0:
            return None
        return Candidate(
            score=score,
            timestamp=sample.timestamp,
            description=description,
            subsystem=sample.subsystem,
        )

    def score_cpu(self, sample: Sample) -> Optional[Candidate]:
        t = self.thresholds
        user, system = sample.get("%user"), sample.get("%system")
        iowait, steal = sample.get("%iowait"), sample.get("%steal")
        busy = None if user is None and system is None else (user or 0.0) + (system or 0.0)

        score = 0
        if _above(busy, t.cpu_busy_pct):
            score += 2
        if _above(iowait, t.cpu_iowait_warn):
            score += 2
        if _above(steal, t.cpu_steal_warn):
            score += 3
        return self._candidate(score, sample, f"busy={_fmt(busy, '.1f')}% iow={_fmt(iowait, '.1f')}%")

    def score_run_queue(
        self, runq_avg: Optional[float], vcpu_count: int, timestamp: str
    ) -> Optional[Candidate]:
        """
        Window-level scheduler pressure: one +2 candidate when the mean
        run-queue length exceeds vcpu_count * runq_factor.
        """
        if runq_avg is None:
            return None
        threshold = vcpu_count * self.thresholds.runq_factor
        if runq_avg <= threshold:
            return None
        return Candidate(
            score=2,
            timestamp=timestamp,
            description=f"runq avg={runq_avg:.2f} (> {threshold:.2f})",
            subsystem=Subsystem.CPU,
        )

    def score_memory(self, sample: Sample) -> Optional[Candidate]:
        t = self.thresholds
        memused, kbavail = sample.get("%memused"), sample.get("kbavail")
        if not memused and not kbavail:
            # zero/zero or absent/absent rows carry no data
            return None

        score = 0
        if _above(memused, t.mem_used_warn):
            score += 2
        if kbavail is not None and kbavail < t.mem_avail_min_kb:
            score += 3
        return self._candidate(
            score, sample, f"%memused={_fmt(memused, '.1f')} kbavail={_fmt(kbavail, '.0f')}"
        )

    def score_disk(self, sample: Sample) -> Optional[Candidate]:
        t = self.thresholds
        await_ms, util, aqu = sample.get("await"), sample.get("%util"), sample.get("aqu-sz")

        score = 0
        if _at_least(await_ms, t.disk_await_spike):
            score += 3
        if _at_least(util, t.disk_util_spike):
            score += 3
        if _at_least(aqu, t.disk_aqu_spike):
            score += 2
        return self._candidate(
            score,
            sample,
            f"DEV={sample.resource_key} await={_fmt(await_ms, '.1f')}ms "
            f"util={_fmt(util, '.0f')}% aqu={_fmt(aqu, '.2f')}",
        )

    def score_net_load(
        self, sample: Sample, ifutil: Optional[float], speed_known: bool
    ) -> Optional[Candidate]:
        """
        Score one interface sample by utilization.

        Args:
            sample: The network device sample
            ifutil: Measured or estimated utilization percentage
            speed_known: Whether a link speed is configured for the interface;
                         samples of other links are never scored
        """
        rx, tx = sample.get("rxkB/s"), sample.get("txkB/s")
        load = (rx or 0.0) + (tx or 0.0)
        score = 2 if speed_known and _at_least(ifutil, self.thresholds.ifutil_warn) else 0
        return self._candidate(
            score,
            sample,
            f"IF={sample.resource_key} load={load:.1f}kB/s ifutil={_fmt(ifutil, '.1f')}%",
        )

    def score_net_error(self, sample: Sample) -> Optional[Candidate]:
        minimum = self.thresholds.net_err_min
        rxerr, txerr = sample.get("rxerr/s"), sample.get("txerr/s")
        rxdrop, txdrop = sample.get("rxdrop/s"), sample.get("txdrop/s")

        score = 0
        if _above(rxerr, minimum) or _above(txerr, minimum):
            score += 3
        if _above(rxdrop, minimum) or _above(txdrop, minimum):
            score += 2
        return self._candidate(
            score,
            sample,
            f"IF={sample.resource_key} rxerr={_fmt(rxerr, '.1f')} txerr={_fmt(txerr, '.1f')} "
            f"rxdrop={_fmt(rxdrop, '.1f')} txdrop={_fmt(txdrop, '.1f')}",
        )

    def score_socket(self, sample: Sample) -> Optional[Candidate]:
        tw = sample.get("tcp-tw")
        score = 1 if _above(tw, 0) else 0
        return self._candidate(
            score,
            sample,
            f"SOCK tots={_fmt(sample.get('totsck'), '.0f')} tcp={_fmt(sample.get('tcpsck'), '.0f')} "
            f"udp={_fmt(sample.get('udpsck'), '.0f')} tw={_fmt(tw, '.0f')}",
        )

    def score_tcp(self, sample: Sample) -> Optional[Candidate]:
        active, passive = sample.get("active/s"), sample.get("passive/s")
        retrans, inerr = sample.get("retrans/s"), sample.get("inerr")

        score = 0
        if _above(retrans, 0):
            score += 4
        if _above(inerr, 0):
            score += 4
        if _above(active, 0) or _above(passive, 0):
            score += 1
        return self._candidate(
            score,
            sample,
            f"TCP active/s={_fmt(active, '.1f')} passive/s={_fmt(passive, '.1f')} "
            f"retrans/s={_fmt(retrans, '.1f')} estab={_fmt(sample.get('estab'), '.0f')} "
            f"inerr={_fmt(inerr, '.1f')}",
        )

    def score_ip(self, sample: Sample) -> Optional[Candidate]:
        irec, idel, irej = sample.get("irec/s"), sample.get("idel/s"), sample.get("irej/s")

        score = 0
        if _above(irej, 0):
            score += 3
        if _above(irec, self.thresholds.ip_irec_busy) and _above(idel, 0):
            score += 1
        return self._candidate(
            score,
            sample,
            f"IP irec/s={_fmt(irec, '.1f')} idel/s={_fmt(idel, '.1f')} irej/s={_fmt(irej, '.1f')}",
        )
