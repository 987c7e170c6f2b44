# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

from machine_identity.cli import main

main()
