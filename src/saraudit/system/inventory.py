"""
Informational hardware inventory appended to the report.

Nothing here is scored. It only helps a reader map device names in the disk
section (dm-0, nvme0n1...) to volumes and mount points.
"""

import logging
import shutil
from typing import List

import psutil

from ..models.results import InventoryBlock
from .commands import run_command

logger = logging.getLogger(__name__)

LSBLK_COLUMNS = "NAME,KNAME,TYPE,SIZE,FSTYPE,MOUNTPOINTS"


def collect_inventory(timeout: float = 30.0) -> List[InventoryBlock]:
    """
    Collect block device and volume listings.

    Uses lsblk and lvs when present; falls back to psutil's partition list
    when lsblk is missing.
    """
    blocks: List[InventoryBlock] = []

    if shutil.which("lsblk"):
        code, out, err = run_command(["lsblk", "-o", LSBLK_COLUMNS], timeout=timeout)
        if code == 0 and out.strip():
            blocks.append(InventoryBlock("Block devices/volumes (lsblk)", out.rstrip()))
        else:
            logger.debug(f"lsblk failed (rc={code}): {err.strip()}")
    else:
        partitions = psutil.disk_partitions(all=False)
        if partitions:
            lines = [f"{'DEVICE':<24} {'MOUNTPOINT':<24} FSTYPE"]
            lines.extend(f"{p.device:<24} {p.mountpoint:<24} {p.fstype}" for p in partitions)
            blocks.append(InventoryBlock("Mounted partitions", "\n".join(lines)))

    if shutil.which("lvs"):
        code, out, err = run_command(["lvs"], timeout=timeout)
        if code == 0 and out.strip():
            blocks.append(InventoryBlock("LVM logical volumes (lvs)", out.rstrip()))
        else:
            logger.debug(f"lvs failed (rc={code}): {err.strip()}")

    return blocks
