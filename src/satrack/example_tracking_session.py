"""
example_tracking_session.py — Demonstration of the satrack Engine
===================================================================

Loads the demonstration catalog, runs a few simulated minutes of display
ticks with occlusion and night masking enabled, and prints what a host
would draw: visible counts per category, the selected object's report,
ground-station markers and the day/night terminator.
"""

from datetime import timedelta

import numpy as np

from satrack import (
    TrackerConfig, TrackingEngine, TickInputs, SimulationClock,
    ObserverLocation, load_demo_catalog, parse_tle, look_angles,
    subsolar_point, terminator_points, tle_to_lines,
    geodetic_to_cartesian,
)
from satrack.catalog import DEMO_EPOCH

ISS_TLE = (
    "ISS (ZARYA)",
    "1 25544U 98067A   19343.69339541  .00001764  00000-0  38792-4 0  9991",
    "2 25544  51.6439 211.2001 0007417  17.6667  85.6398 15.50103472202482",
)


def main():
    print("=" * 70)
    print("  satrack — Real-Time Orbital Tracking Demo")
    print("=" * 70)

    # ── 1. Element Sets ─────────────────────────────────────────────────
    print("\n1. ELEMENT SETS")
    print("-" * 40)

    iss = parse_tle(*ISS_TLE, category="ISS")
    print(f"  {iss.name}: NORAD {iss.norad_id}, epoch {iss.epoch.isoformat()}")
    print(f"  Inclination:  {np.rad2deg(iss.inclination):.4f}°")
    print(f"  Period:       {iss.period:.2f} min ({iss.orbit_type()})")
    print(f"  Perigee/apogee altitude: {iss.perigee:.1f} / {iss.apogee:.1f} km")
    line1, line2 = tle_to_lines(iss)
    print(f"  Re-exported:\n    {line1}\n    {line2}")

    config = TrackerConfig(max_history_points=500, default_rate=60)
    catalog = load_demo_catalog()
    print(f"\n  Demo catalog: {len(catalog)} objects in "
          f"{', '.join(catalog.categories())}")

    # ── 2. Engine Setup ─────────────────────────────────────────────────
    print("\n2. ENGINE")
    print("-" * 40)

    clock = SimulationClock(start=DEMO_EPOCH, rate_multiplier=config.default_rate)
    engine = TrackingEngine(catalog, config=config, clock=clock)
    home = ObserverLocation(latitude=38.9072, longitude=-77.0369, name="Washington DC")
    camera = geodetic_to_cartesian(home.latitude, home.longitude,
                                   alt=2.0 * config.scene_earth_radius,
                                   radius=config.scene_earth_radius)

    print(f"  Clock:    {clock!r}")
    print(f"  Observer: {home.name} ({home.latitude:.2f}°, {home.longitude:.2f}°)")
    print(f"  Camera:   above observer, scene {np.round(camera, 3)}")

    # ── 3. Ticks ────────────────────────────────────────────────────────
    print("\n3. TICKING (60 frames of 1 s at 60×)")
    print("-" * 40)

    inputs = TickInputs(wall_delta_ms=1000.0, observer=home,
                        occlusion_enabled=True, night_mask_enabled=True,
                        camera_position=camera, selected="ISS (ZARYA)")
    with engine:
        for _ in range(60):
            out = engine.tick(inputs)

        print(f"  Virtual time: {out.time.isoformat()}")
        print(f"  Visible: {len(out.visible_names)}/{len(out.results)}")
        per_cat = {}
        for name in out.visible_names:
            cat = catalog.get(name).category
            per_cat[cat] = per_cat.get(cat, 0) + 1
        for cat in sorted(per_cat):
            print(f"    {cat:<18s} {per_cat[cat]}")
        if out.failures:
            print(f"  Failures: {out.failures}")

        # ── 4. Selected Object ──────────────────────────────────────────
        print("\n4. SELECTED OBJECT")
        print("-" * 40)

        sel = out.selected
        if sel is not None and sel.sample is not None:
            s = sel.sample
            print(f"  {sel.name}")
            print(f"  Sub-point:   lat={s.latitude:.2f}°, lon={s.longitude:.2f}°")
            print(f"  Altitude:    {s.altitude:.1f} km, speed {s.speed:.3f} km/s")
            print(f"  Orbit plane: inc={sel.inclination:.2f}°, RAAN={sel.raan:.2f}°")
            if sel.look_angles is not None:
                la = sel.look_angles
                print(f"  From {home.name}: az={la.azimuth:.1f}°, "
                      f"el={la.elevation:.1f}°, range={la.range:.0f} km "
                      f"({'up' if la.above_horizon else 'below horizon'})")

        hist = catalog.get("ISS (ZARYA)").history
        print(f"  History: {len(hist.path_points)} orbit points, "
              f"{len(hist.ground_track_points)} ground-track points")

        # ── 5. Pass Scan ────────────────────────────────────────────────
        print("\n5. ISS ELEVATION OVER THE NEXT 3 HOURS (10 min steps)")
        print("-" * 40)

        iss_demo = catalog.get("ISS (ZARYA)").element_set
        for k in range(18):
            t = out.time + timedelta(minutes=10 * k)
            la = look_angles(iss_demo, home, t, engine.propagator)
            mark = "*" if la is not None and la.above_horizon else " "
            el = "  n/a" if la is None else f"{la.elevation:+6.1f}°"
            print(f"    {t.strftime('%H:%M')}  el={el} {mark}")

        # ── 6. Markers & Terminator ─────────────────────────────────────
        print("\n6. GROUND STATIONS & TERMINATOR")
        print("-" * 40)

        for name, vis in out.station_visibility.items():
            print(f"  {name:<18s} {'facing camera' if vis else 'hidden'}")
        print(f"  Home marker visible: {out.observer_visible}")

        sub = subsolar_point(out.time)
        ring = terminator_points(out.sun_direction, config.scene_earth_radius)
        print(f"  Subsolar point: lat={sub.latitude:.2f}°, lon={sub.longitude:.2f}°")
        print(f"  Terminator ring: {len(ring)} points, "
              f"max |r·sun| = {np.max(np.abs(ring @ out.sun_direction)):.1e}")

    print("\n" + "=" * 70)
    print("  Demo complete.")
    print("=" * 70)


if __name__ == "__main__":
    main()
