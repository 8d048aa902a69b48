"""Shared test fixtures: a generated controller and its hand-edited counterpart."""

from __future__ import annotations

from pathlib import Path

import pytest

GENERATED_CONTROLLER = """\
using System;
using System.Collections.Generic;
using Microsoft.AspNetCore.Mvc;

namespace Shop.Controllers
{
    public class ProductsController : ControllerBase
    {
        public string Title { get; set; }

        [HttpGet]
        public IEnumerable<int> GetAll()
        {
            return new List<int>();
        }

        [HttpGet("{id}")]
        public IActionResult GetById(int id)
        {
            if (id <= 0) { return NotFound(); }
            return Ok(id);
        }
    }
}
"""

EXISTING_CONTROLLER = """\
using System;
using Microsoft.AspNetCore.Mvc;

namespace Shop.Controllers
{
    public class ProductsController : ControllerBase
    {
        public string Title { get; set; }

        [HttpGet("{id}")]
        public IActionResult GetById(int id)
        {
            return Ok(id);
        }

        // Hand-written: soft delete.
        [HttpPost("{id}/archive")]
        public IActionResult Archive(int id)
        {
            return NoContent();
        }
    }
}
"""


@pytest.fixture
def generated_source() -> str:
    return GENERATED_CONTROLLER


@pytest.fixture
def existing_source() -> str:
    return EXISTING_CONTROLLER


@pytest.fixture
def controller_pair(tmp_path: Path) -> tuple[str, str]:
    """Write both controllers to disk; returns ``(generated_path, existing_path)``."""
    gen_dir = tmp_path / "generated"
    gen_dir.mkdir()
    target_dir = tmp_path / "src"
    target_dir.mkdir()
    gen = gen_dir / "ProductsController.cs"
    existing = target_dir / "ProductsController.cs"
    gen.write_text(GENERATED_CONTROLLER, encoding="utf-8")
    existing.write_text(EXISTING_CONTROLLER, encoding="utf-8")
    return str(gen), str(existing)
