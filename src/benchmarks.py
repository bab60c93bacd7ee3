"""FOV calculation benchmarks.

Key Ideas:
- Randomly generate X*Y maps with N blocked tiles
- Each bench runs 10 FOV calcs per map.  If 50 maps, 500 FOV calcs are done.
- Dense: `FovMap.calculate_fov()`, which resets and sweeps a full-map vision array.
- Sub-grid: `field_of_view()`, which allocates only the radius' bounding square.

Operational Complexity:
    where r = FOV radius; n = number of map tiles

Dense 2D:       O(n + r^2)  vision array reset on every calc
Sub-grid 2D:    O(r^2)      rays to the perimeter (O(r)), O(r) steps each

Takeaways:
1.) The sub-grid variant wins whenever the map is large compared to the radius.
2.) The denser the blockers, the sooner rays stop and the faster both variants run.
"""
import random
import time
from fov_raycast import FovMap, GridMap, field_of_view
from helpers import Coords
from typing import Callable, List, Tuple

#    ######   ########  ########  ##    ##  #######
#   ##        ##           ##     ##    ##  ##    ##
#    ######   ######       ##     ##    ##  #######
#         ##  ##           ##     ##    ##  ##
#   #######   ########     ##      ######   ##


class BenchSettings:
    def __init__(
        self, seed: int, dims: Coords, maps: int, radius: int, pct_blocked: float
    ) -> None:
        self.seed = seed
        self.dims = dims
        self.maps = maps
        self.radius = radius
        self.pct_blocked = pct_blocked
        self.blocked_ct = int(dims.x * dims.y * pct_blocked)


def random_blocked(dims: Coords, count: int, rng: random.Random) -> List[Tuple[int, int]]:
    """Generates `count` random blocked (x,y) coordinates. Duplicates are allowed."""
    x, y = dims.x - 1, dims.y - 1

    return [(rng.randint(0, x), rng.randint(0, y)) for _ in range(count)]


def bench_origins(dims: Coords) -> List[Tuple[int, int]]:
    """Ten observer positions along the middle row of the map."""
    sx, sy = dims.x // 2, dims.y // 2
    return [(sx + dx, sy) for dx in range(-4, 6)]


def bench_dense(bs: BenchSettings) -> float:
    """Times `FovMap.calculate_fov()` for every map and origin."""
    rng = random.Random(bs.seed)
    total = 0.0
    visible_ct = 0

    for _ in range(bs.maps):
        fov_map = FovMap.from_blocked(bs.dims.x, bs.dims.y, random_blocked(bs.dims, bs.blocked_ct, rng))
        start = time.perf_counter()
        for ox, oy in bench_origins(bs.dims):
            fov_map.calculate_fov(ox, oy, bs.radius)
            visible_ct += sum(fov_map.vision)
        total += time.perf_counter() - start

    print(f"  {visible_ct} visible tiles")

    return total


def bench_subgrid(bs: BenchSettings) -> float:
    """Times `field_of_view()` for every map and origin."""
    rng = random.Random(bs.seed)
    total = 0.0
    visible_ct = 0

    for _ in range(bs.maps):
        grid_map = GridMap(bs.dims.x, bs.dims.y)
        for x, y in random_blocked(bs.dims, bs.blocked_ct, rng):
            grid_map.set_transparent(x, y, False)
        start = time.perf_counter()
        for ox, oy in bench_origins(bs.dims):
            visible_ct += len(field_of_view(grid_map, ox, oy, bs.radius))
        total += time.perf_counter() - start

    print(f"  {visible_ct} visible tiles")

    return total


#   #######   ########  ##    ##   ######   ##    ##
#   ##    ##  ##        ###   ##  ##    ##  ##    ##
#   #######   ######    ## ## ##  ##        ########
#   ##    ##  ##        ##   ###  ##    ##  ##    ##
#   #######   ########  ##    ##   ######   ##    ##


def run_benchmark(
    name: str, funcs: List[Tuple[str, Callable]], settings: BenchSettings
) -> List[Tuple[str, float, int]]:
    """Summarizes collection of benchmarks in (bench_name, bench_func) format.

    Notes:
    - there are 10 tiles explored per map in `maps`
    - results are sorted by lowest time
    """
    s = settings
    print(f"--- {name} benchmarks ---")
    print(
        f"Dims = {s.dims.x}x{s.dims.y}, density = {s.pct_blocked}, maps = {s.maps}, radius = {s.radius}"
    )

    frames = settings.maps * 10
    results = []

    for func_name, func in funcs:
        print(f"Benchmarking {func_name}...")
        total_time = func(settings)
        fps = int(frames / total_time) if total_time > 0 else 0
        results.append((func_name, total_time, fps))

    results.sort(key=lambda r: r[1])
    print("...Done!  The results:\n")

    for bench_name, total_time, fps in results:
        print(f"{bench_name:20} {round(total_time, 3):6} seconds {fps:5} FPS")

    return results


#   ########  ########   ######   ########
#      ##     ##        ##           ##
#      ##     ######     ######      ##
#      ##     ##              ##     ##
#      ##     ########  #######      ##


def test_random_blocked_seeded():
    dims = Coords(16, 8)
    first = random_blocked(dims, 20, random.Random(13))
    second = random_blocked(dims, 20, random.Random(13))

    assert first == second
    assert len(first) == 20
    assert all(0 <= x < 16 and 0 <= y < 8 for x, y in first)


def test_bench_variants_agree(capsys):
    bs = BenchSettings(13, Coords(24, 24), maps=2, radius=6, pct_blocked=0.1)

    results = run_benchmark("Tiny", [("Dense", bench_dense), ("Sub-grid", bench_subgrid)], bs)
    out = capsys.readouterr().out
    counts = [line for line in out.splitlines() if line.endswith("visible tiles")]

    assert len(results) == 2
    assert len(counts) == 2
    assert counts[0] == counts[1]


#   ##    ##     ##     ########  ##    ##
#   ###  ###   ##  ##      ##     ####  ##
#   ## ## ##  ##    ##     ##     ## ## ##
#   ##    ##  ########     ##     ##  ####
#   ##    ##  ##    ##  ########  ##    ##

if __name__ == "__main__":
    print(f"\n===== FOV Benchmarks =====\n")

    seed = 13
    dims = Coords(128, 128)
    maps = 50
    radius = 24
    density = 0.10

    bench_settings = BenchSettings(seed, dims, maps, radius, density)

    run_benchmark(
        f"Density {int(density * 100)}% Radius {radius}",
        [
            ("Dense 2D", bench_dense),
            ("Sub-grid 2D", bench_subgrid),
        ],
        bench_settings,
    )
