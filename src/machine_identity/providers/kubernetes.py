# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Best-effort EKS cluster name discovery from the kubelet kubeconfig."""

from __future__ import annotations

import logging
from typing import Any

import yaml

logger = logging.getLogger(__name__)

KUBELET_USER = "kubelet"
CLUSTER_FLAG = "-i"


def read_cluster_name(path: str) -> str:
    """Return the cluster name passed to the kubelet's exec credential plugin.

    The kubelet user's ``exec.args`` carries ``-i <cluster>`` (the
    aws-iam-authenticator convention).  Any read or parse failure yields ``""``.
    """
    try:
        with open(path, "rb") as fh:
            kubeconfig = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        logger.debug("No cluster name from %s: %s", path, exc)
        return ""
    return cluster_from_kubeconfig(kubeconfig)


def cluster_from_kubeconfig(kubeconfig: Any) -> str:
    if not isinstance(kubeconfig, dict):
        return ""
    users = kubeconfig.get("users")
    if not isinstance(users, list):
        return ""
    for entry in users:
        if not isinstance(entry, dict) or entry.get("name") != KUBELET_USER:
            continue
        user = entry.get("user")
        exec_config = user.get("exec") if isinstance(user, dict) else None
        args = exec_config.get("args") if isinstance(exec_config, dict) else None
        if isinstance(args, list) and CLUSTER_FLAG in args:
            i = args.index(CLUSTER_FLAG)
            if i + 1 < len(args):
                return str(args[i + 1])
    return ""
