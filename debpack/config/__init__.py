# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Recipe loading for debpack.

Public API:

- load_effective_config: Load a recipe and merge it over defaults/org.yaml

Example:
    Basic usage:

        from pathlib import Path
        from debpack.config import load_effective_config

        config = load_effective_config(Path("debpack.yaml"))
        print(config["package"]["name"])  # "roextract"

"""

from .loader import load_effective_config

__all__ = ["load_effective_config"]
