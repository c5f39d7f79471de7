from pathlib import Path

import HybridLBOpt

HERE = Path(__file__).parent

if __name__ == "__main__":
    # Run an optimization by passing parameters as keyword arguments
    HybridLBOpt.run(
        config_file=str(HERE / 'config.json'),
        tasks_file=str(HERE / 'tasks.csv'),
        data_centers_file=str(HERE / 'data_centers.csv'),
        random_seed=7,
    )

    # Four independent seeded runs on two worker processes; the best one is reported
    print("\nStarting a new parallel run...\n")
    HybridLBOpt.run(
        config_file=str(HERE / 'config.json'),
        tasks_file=str(HERE / 'tasks.csv'),
        num_data_centers=4,
        data_centers_file=None,
        number_of_workers=2,
        number_of_runs=4,
        epochs=5,
    )
