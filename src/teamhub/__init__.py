# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""TeamHub Chat - real-time chat core for the TeamHub collaboration backend."""

__version__ = "1.0.0"
