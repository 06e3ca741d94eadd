import matplotlib.pyplot as plt
import numpy as np
import pytest
from matplotlib.colors import to_hex

from bivariate_tracts import maps
from bivariate_tracts.classify import classify_bivariate
from bivariate_tracts.palette import MISSING_COLOR, bivariate_palette


@pytest.fixture
def grid_result(grid_tracts):
    return classify_bivariate(grid_tracts["pct_subgroup"], grid_tracts["pct_bachelors"], k=3)


def test_format_breaks():
    assert maps.format_breaks([1 / 3, 2 / 3]) == ["33%", "67%"]
    assert maps.format_breaks([0.5], fmt="{:.2f}") == ["0.50"]


def test_legend_draws_k_squared_cells(grid_result):
    fig, ax = plt.subplots()
    maps.draw_legend(ax, grid_result, x_label="% Black", y_label="% bachelor's")
    fig.canvas.draw()
    assert len(ax.patches) == 9
    assert [t.get_text() for t in ax.get_xticklabels()] == ["33%", "67%"]
    assert [t.get_text() for t in ax.get_yticklabels()] == ["33%", "67%"]
    assert ax.get_xlim() == (0, 3)
    plt.close(fig)


def test_plot_colors_follow_labels(grid_tracts, grid_result):
    fig, ax = maps.plot_bivariate_map(grid_tracts, grid_result, title="Test")
    pal = bivariate_palette(3)
    faces = [to_hex(c) for c in ax.collections[0].get_facecolors()]
    assert faces == [pal[lab] for lab in grid_result.labels]
    # main axes + legend inset
    assert len(fig.axes) == 2
    assert ax.get_title() == "Test"
    plt.close(fig)


def test_missing_tracts_gray_or_hidden(grid_tracts):
    g = grid_tracts.copy()
    g.loc[2, "pct_subgroup"] = np.nan
    res = classify_bivariate(g["pct_subgroup"], g["pct_bachelors"], k=3)

    fig, ax = maps.plot_bivariate_map(g, res, legend=False)
    faces = [to_hex(c) for c in ax.collections[0].get_facecolors()]
    assert faces[2] == MISSING_COLOR
    assert len(fig.axes) == 1
    plt.close(fig)

    fig, ax = maps.plot_bivariate_map(g, res, show_missing=False, legend=False)
    assert len(ax.collections[0].get_paths()) == 4
    plt.close(fig)


def test_plot_rejects_misaligned_rows(grid_tracts, grid_result):
    with pytest.raises(ValueError):
        maps.plot_bivariate_map(grid_tracts.iloc[:3], grid_result)


def test_save_fig(tmp_path, grid_tracts, grid_result, capsys):
    fig, _ = maps.plot_bivariate_map(grid_tracts, grid_result)
    maps.add_caption(fig, "Source: test")
    out = maps.save_fig(fig, tmp_path / "figs" / "map.png")
    assert out.exists() and out.stat().st_size > 0
    assert "[ok] wrote" in capsys.readouterr().out


def test_center_from_bounds_is_lat_lon_tuple():
    assert maps._center_from_bounds([-74.0, 40.0, -73.0, 41.0]) == (40.5, -73.5)


def test_interactive_map(tmp_path, grid_tracts, grid_result):
    out = maps.make_interactive_map(grid_tracts, grid_result, tmp_path / "map.html", title="Kings County")
    html = out.read_text(encoding="utf-8")
    assert "Kings County" in html
    assert bivariate_palette(3)[(2, 2)] in html
