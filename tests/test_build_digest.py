import os

from prdigest import build_digest


#============================================
def test_parse_args_defaults() -> None:
	args = build_digest.parse_args(["archives", "docs"])
	assert args.archives_dir == "archives"
	assert args.outputs_dir == "docs"
	assert not args.generate
	assert args.max_workers is None


#============================================
def test_main_rebuilds_site_without_generate(tmp_path) -> None:
	"""
	Without -g only the archive conversion and index run.
	"""
	archives = tmp_path / "archives"
	outputs = tmp_path / "docs"
	os.makedirs(archives / "2026" / "10", exist_ok=True)
	(archives / "2026" / "10" / "17.md").write_text("### 目次 {#table-of-contents}\n", encoding="utf-8")
	settings_path = tmp_path / "settings.yaml"
	settings_path.write_text(
		"github:\n  repository: dotnet/aspnetcore\nsite:\n  name: Digest Test\n",
		encoding="utf-8",
	)
	build_digest.main([str(archives), str(outputs), "--settings", str(settings_path)])
	page = (outputs / "2026" / "10" / "17.html").read_text(encoding="utf-8")
	assert "dotnet/aspnetcore" in page
	index_text = (outputs / "index.html").read_text(encoding="utf-8")
	assert "<title>Digest Test</title>" in index_text
